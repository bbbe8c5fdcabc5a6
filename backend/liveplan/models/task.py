from datetime import datetime
from enum import Enum

from pydantic import Field, field_serializer

from liveplan.datekey import DateKey
from liveplan.models.base import Entity, new_id, utcnow
from liveplan.models.recurrence import RecurrenceRule


class TaskStatus(str, Enum):
    OPEN = "open"
    COMPLETED_ONCE = "completed_once"


class Priority(int, Enum):
    """P1 is the most urgent, P4 the default."""

    P1 = 1
    P2 = 2
    P3 = 3
    P4 = 4


class Task(Entity):
    """
    Task model.

    Key fields:
    - due_date: calendar day the (single) occurrence is due
    - recurrence_rule: makes the task recurring; recurring tasks stay OPEN and
      track completion per occurrence in the completion log
    - depends_on: ids of tasks this one is blocked by; acyclic across all tasks
    """

    id: str = Field(default_factory=new_id)
    title: str
    project_id: str | None = None
    section_id: str | None = None
    due_date: DateKey | None = None
    recurrence_rule: RecurrenceRule | None = None
    depends_on: frozenset[str] = frozenset()
    status: TaskStatus = TaskStatus.OPEN
    priority: Priority = Priority.P4
    tag_ids: frozenset[str] = frozenset()
    note: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_serializer("depends_on", "tag_ids")
    def _serialize_id_set(self, ids: frozenset[str]) -> list[str]:
        return sorted(ids)

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_rule is not None

    @property
    def is_completed_once(self) -> bool:
        return self.status == TaskStatus.COMPLETED_ONCE
