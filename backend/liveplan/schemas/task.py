from datetime import datetime
from pydantic import BaseModel, computed_field

from liveplan.datekey import DateKey
from liveplan.models import Priority, RecurrenceRule, TaskStatus


class TaskCreate(BaseModel):
    """Schema for creating a new task."""
    title: str
    project_id: str | None = None
    section_id: str | None = None
    due_date: DateKey | None = None
    recurrence_rule: RecurrenceRule | None = None
    depends_on: list[str] = []
    priority: Priority = Priority.P4
    tag_ids: list[str] = []
    note: str | None = None


class TaskUpdate(BaseModel):
    """
    Schema for updating a task.

    Only fields present in the request are applied; send ``null`` to clear
    an optional field.
    """
    title: str | None = None
    project_id: str | None = None
    section_id: str | None = None
    due_date: DateKey | None = None
    recurrence_rule: RecurrenceRule | None = None
    depends_on: list[str] | None = None
    priority: Priority | None = None
    tag_ids: list[str] | None = None
    note: str | None = None


class TaskRead(BaseModel):
    """Schema for reading a task."""
    id: str
    title: str
    project_id: str | None
    section_id: str | None
    due_date: DateKey | None
    recurrence_rule: RecurrenceRule | None
    depends_on: list[str]
    status: TaskStatus
    priority: Priority
    tag_ids: list[str]
    note: str | None
    created_at: datetime

    @computed_field
    @property
    def is_recurring(self) -> bool:
        return self.recurrence_rule is not None

    @classmethod
    def from_task(cls, task) -> "TaskRead":
        return cls(
            **task.model_dump(exclude={"depends_on", "tag_ids", "due_date", "recurrence_rule"}),
            due_date=task.due_date,
            recurrence_rule=task.recurrence_rule,
            depends_on=sorted(task.depends_on),
            tag_ids=sorted(task.tag_ids),
        )


class NextOccurrenceRead(BaseModel):
    task_id: str
    after: DateKey
    next_occurrence: DateKey | None


class QuickAddCreate(BaseModel):
    """One line of quick-add text, e.g. ``"Pay rent tomorrow p1 #bills @Home"``."""
    text: str
