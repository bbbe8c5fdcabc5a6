from pydantic import BaseModel

from liveplan.datekey import DateKey
from liveplan.services.selection import FallbackReason, SummaryScope


class SummaryItemRead(BaseModel):
    """One display-list entry; ``title`` is already masked."""
    task_id: str
    title: str
    project_id: str | None
    occurrence_key: DateKey
    is_overdue: bool
    is_recurring: bool
    is_blocked: bool


class SummaryRead(BaseModel):
    date: DateKey
    outstanding_total: int
    overdue_count: int
    recurring_done: int
    recurring_total: int
    blocked_count: int
    scope: SummaryScope
    fallback_reason: FallbackReason | None
    display_list: list[SummaryItemRead]
