"""
Summary aggregation for widgets, Live Activities and intents.

Folds a task set and its completion logs for one calendar day into counters
plus an ordered display list. Pure: the caller passes the day explicitly and
nothing here reads the clock, so identical inputs give identical summaries.
"""

from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any, Iterable, Optional

from liveplan.datekey import DateKey
from liveplan.models import Task
from liveplan.services.occurrences import CompletionLedger, Occurrence, outstanding_occurrences
from liveplan.services.recurrence import occurs_on
from liveplan.services.selection import Selection


@dataclass(frozen=True)
class Summary:
    """Counters and display list for one day."""

    date: DateKey
    outstanding_total: int
    overdue_count: int
    recurring_done: int
    recurring_total: int
    blocked_count: int = 0
    display_list: tuple[Occurrence, ...] = field(default_factory=tuple)
    selection: Selection = field(default_factory=Selection)

    @property
    def top(self) -> Optional[Occurrence]:
        """The Top-1 item, if anything is outstanding."""
        return self.display_list[0] if self.display_list else None

    def to_dict(self) -> dict[str, Any]:
        reason = self.selection.fallback_reason
        return {
            "date": str(self.date),
            "outstanding_total": self.outstanding_total,
            "overdue_count": self.overdue_count,
            "recurring_done": self.recurring_done,
            "recurring_total": self.recurring_total,
            "blocked_count": self.blocked_count,
            "scope": self.selection.scope.value,
            "fallback_reason": reason.value if reason is not None else None,
            "display_list": [
                {
                    "task_id": item.task.id,
                    "title": item.task.title,
                    "project_id": item.task.project_id,
                    "occurrence_key": str(item.occurrence_key),
                    "is_overdue": item.is_overdue,
                    "is_recurring": item.is_recurring,
                    "is_blocked": item.is_blocked,
                }
                for item in self.display_list
            ],
        }


def aggregate(
    tasks: Iterable[Task],
    logs,
    day: DateKey,
    tz: tzinfo,
    lookback_days: Optional[int] = 7,
    selection: Optional[Selection] = None,
    all_tasks: Optional[Iterable[Task]] = None,
) -> Summary:
    """
    Build the Summary for ``day``.

    - outstanding: uncompleted occurrences due on or before ``day``
    - overdue: outstanding occurrences strictly before ``day``
    - recurring done/total: recurring tasks with an occurrence on ``day``

    ``tasks`` are expected to be scoped already; ``selection`` only records
    which scope they came from and ``all_tasks`` resolves blockers.
    """
    tasks = list(tasks)
    ledger = CompletionLedger.of(logs)

    display_list = tuple(outstanding_occurrences(tasks, ledger, day, tz, lookback_days, all_tasks))

    recurring_today = [
        task for task in tasks
        if task.recurrence_rule is not None and occurs_on(task.recurrence_rule, day)
    ]
    recurring_done = sum(1 for task in recurring_today if ledger.contains(task.id, day))

    return Summary(
        date=day,
        outstanding_total=len(display_list),
        overdue_count=sum(1 for item in display_list if item.is_overdue),
        recurring_done=recurring_done,
        recurring_total=len(recurring_today),
        blocked_count=sum(1 for item in display_list if item.is_blocked),
        display_list=display_list,
        selection=selection or Selection(),
    )
