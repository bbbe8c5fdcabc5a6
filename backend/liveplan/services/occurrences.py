"""
Occurrence resolution shared by the completion engine and the aggregator.

Keys:
- recurring task: the calendar day of the occurrence
- one-off task: its due date, or its creation day when it has none

Outstanding occurrences are ordered overdue first, then by occurrence day,
then creation time, then id. Summaries and "complete next" both use this
order, so the Top-1 shown in a widget is the task "complete next" acts on.
"""

from dataclasses import dataclass
from datetime import tzinfo
from typing import Iterable, Optional

from liveplan.datekey import DateKey
from liveplan.exceptions import ValidationError
from liveplan.models import CompletionLog, Task, TaskStatus
from liveplan.services.recurrence import occurrences_between, occurs_on


class CompletionLedger:
    """Lookup index over completion logs keyed by (task_id, occurrence_key)."""

    def __init__(self, logs: Iterable[CompletionLog] = ()):
        self._logs: dict[tuple[str, DateKey], CompletionLog] = {}
        for log in logs:
            self._logs[log.key] = log

    @classmethod
    def of(cls, logs) -> "CompletionLedger":
        if isinstance(logs, CompletionLedger):
            return logs
        return cls(logs)

    def get(self, task_id: str, occurrence_key: DateKey) -> Optional[CompletionLog]:
        return self._logs.get((task_id, occurrence_key))

    def contains(self, task_id: str, occurrence_key: DateKey) -> bool:
        return (task_id, occurrence_key) in self._logs

    def __len__(self) -> int:
        return len(self._logs)


@dataclass(frozen=True)
class Occurrence:
    """One outstanding occurrence, as shown in display lists."""

    task: Task
    occurrence_key: DateKey
    is_overdue: bool
    is_recurring: bool
    is_blocked: bool = False

    def sort_key(self):
        return (0 if self.is_overdue else 1, self.occurrence_key, self.task.created_at, self.task.id)


def occurrence_key_for(task: Task, day: Optional[DateKey], tz: tzinfo) -> DateKey:
    """Which occurrence of ``task`` a completion on ``day`` refers to."""
    if task.is_recurring:
        if day is None:
            raise ValidationError(f"Recurring task {task.id} needs an occurrence date")
        return day
    if task.due_date is not None:
        return task.due_date
    return DateKey.from_datetime(task.created_at, tz)


def is_occurrence_due(task: Task, day: DateKey) -> bool:
    """Whether ``task`` has an occurrence scheduled on ``day``."""
    if task.recurrence_rule is not None:
        return occurs_on(task.recurrence_rule, day)
    return task.due_date == day


def is_occurrence_completed(task: Task, day: Optional[DateKey], logs, tz: tzinfo) -> bool:
    ledger = CompletionLedger.of(logs)
    if not task.is_recurring and task.status == TaskStatus.COMPLETED_ONCE:
        return True
    return ledger.contains(task.id, occurrence_key_for(task, day, tz))


def _is_blocked(task: Task, by_id: dict[str, Task], ledger: CompletionLedger, day: DateKey) -> bool:
    for dependency_id in task.depends_on:
        dependency = by_id.get(dependency_id)
        if dependency is None:
            continue
        if dependency.is_recurring:
            if occurs_on(dependency.recurrence_rule, day) and not ledger.contains(dependency.id, day):
                return True
        elif dependency.status == TaskStatus.OPEN:
            return True
    return False


def outstanding_occurrences(
    tasks: Iterable[Task],
    logs,
    day: DateKey,
    tz: tzinfo,
    lookback_days: Optional[int] = 7,
    all_tasks: Optional[Iterable[Task]] = None,
) -> list[Occurrence]:
    """
    Every uncompleted occurrence due on or before ``day``, in priority order.

    Recurring tasks contribute one item per missed occurrence since
    ``max(anchor, day - lookback_days)``; ``None`` looks back to the anchor.
    Dependencies are resolved against ``all_tasks`` (default ``tasks``), so a
    scoped list still sees blockers outside its scope.
    """
    tasks = list(tasks)
    ledger = CompletionLedger.of(logs)
    by_id = {task.id: task for task in (tasks if all_tasks is None else all_tasks)}
    window_start = day.add_days(-lookback_days, tz) if lookback_days is not None else None

    items: list[Occurrence] = []
    for task in tasks:
        blocked = _is_blocked(task, by_id, ledger, day) if task.depends_on else False

        if task.recurrence_rule is not None:
            first = task.recurrence_rule.anchor
            if window_start is not None and window_start > first:
                first = window_start
            for key in occurrences_between(task.recurrence_rule, first, day):
                if not ledger.contains(task.id, key):
                    items.append(Occurrence(task, key, key < day, True, blocked))
            continue

        if task.status != TaskStatus.OPEN or task.due_date is None or task.due_date > day:
            continue
        if ledger.contains(task.id, task.due_date):
            continue
        items.append(Occurrence(task, task.due_date, task.due_date < day, False, blocked))

    items.sort(key=Occurrence.sort_key)
    return items
