from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from liveplan.models.base import Entity, new_id
from liveplan.models.task import Priority, TaskStatus


class DueRange(str, Enum):
    NONE = "none"
    TODAY = "today"
    NEXT_7_DAYS = "next_7_days"
    OVERDUE = "overdue"


class FilterSpec(BaseModel):
    """
    Predicate description over tasks.

    ``None`` for a collection means "no restriction". Priority bounds are
    inclusive: ``priority_at_most=P2`` keeps P1 and P2.
    """

    model_config = ConfigDict(frozen=True)

    project_ids: frozenset[str] | None = None
    tag_ids: frozenset[str] | None = None
    section_ids: frozenset[str] | None = None
    priority_at_most: Priority | None = None
    priority_at_least: Priority | None = None
    statuses: frozenset[TaskStatus] = frozenset({TaskStatus.OPEN})
    due_range: DueRange = DueRange.NONE
    include_recurring: bool = True
    exclude_blocked: bool = False

    @field_serializer("project_ids", "tag_ids", "section_ids", "statuses")
    def _serialize_set(self, values):
        if values is None:
            return None
        return sorted(str(getattr(v, "value", v)) for v in values)


class SavedView(Entity):
    """A named, persisted FilterSpec."""

    id: str = Field(default_factory=new_id)
    name: str
    filter_spec: FilterSpec = Field(default_factory=FilterSpec)


def builtin_views() -> list[SavedView]:
    """Views every installation ships with."""
    return [
        SavedView(id="built-in-today", name="Today", filter_spec=FilterSpec(due_range=DueRange.TODAY)),
        SavedView(
            id="built-in-upcoming",
            name="Upcoming",
            filter_spec=FilterSpec(due_range=DueRange.NEXT_7_DAYS),
        ),
        SavedView(id="built-in-overdue", name="Overdue", filter_spec=FilterSpec(due_range=DueRange.OVERDUE)),
        SavedView(
            id="built-in-p1",
            name="P1",
            filter_spec=FilterSpec(priority_at_most=Priority.P1, priority_at_least=Priority.P1),
        ),
    ]
