"""
Completion engine.

Completing is idempotent-by-rejection: a second completion of the same
occurrence raises DuplicateCompletionError instead of merging, so callers can
tell "already done" from "newly done". All checks run before anything new is
built; nothing here touches storage.
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable, Optional

from liveplan.datekey import DateKey
from liveplan.exceptions import (
    DuplicateCompletionError,
    NoTaskToCompleteError,
    NotFoundError,
    ValidationError,
)
from liveplan.models import CompletionLog, Task, TaskStatus
from liveplan.services.occurrences import (
    CompletionLedger,
    is_occurrence_completed,
    occurrence_key_for,
    outstanding_occurrences,
)
from liveplan.services.recurrence import occurs_on


@dataclass(frozen=True)
class CompletionResult:
    """Log written/removed and the task as it should be stored afterwards."""

    log: CompletionLog
    task: Task


def _require_aware(now: datetime) -> None:
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValidationError("Completion time must be timezone-aware")


def complete(
    task: Task,
    day: Optional[DateKey],
    logs,
    now: datetime,
    tz: tzinfo,
) -> CompletionResult:
    """
    Complete the occurrence of ``task`` on ``day``.

    For a one-off task ``day`` is ignored: the occurrence is its due date (or
    creation day) and the task flips to COMPLETED_ONCE.
    """
    _require_aware(now)
    ledger = CompletionLedger.of(logs)
    key = occurrence_key_for(task, day, tz)

    if task.recurrence_rule is not None and not occurs_on(task.recurrence_rule, key):
        raise ValidationError(f"Task {task.id} has no occurrence on {key}")

    if is_occurrence_completed(task, key, ledger, tz):
        raise DuplicateCompletionError(task.id, str(key))

    log = CompletionLog(task_id=task.id, occurrence_key=key, completed_at=now)
    if task.is_recurring:
        return CompletionResult(log=log, task=task)
    return CompletionResult(log=log, task=task.model_copy(update={"status": TaskStatus.COMPLETED_ONCE}))


def uncomplete(task: Task, day: Optional[DateKey], logs, tz: tzinfo) -> CompletionResult:
    """Undo a completion; a one-off task goes back to OPEN."""
    ledger = CompletionLedger.of(logs)
    key = occurrence_key_for(task, day, tz)

    existing = ledger.get(task.id, key)
    if existing is None:
        raise NotFoundError("CompletionLog", f"{task.id}:{key}")

    if task.is_recurring:
        return CompletionResult(log=existing, task=task)
    return CompletionResult(log=existing, task=task.model_copy(update={"status": TaskStatus.OPEN}))


def complete_next(
    tasks: Iterable[Task],
    logs,
    now: datetime,
    tz: tzinfo,
    lookback_days: Optional[int] = 7,
    all_tasks: Optional[Iterable[Task]] = None,
) -> CompletionResult:
    """
    Complete the highest-priority outstanding occurrence among ``tasks``.

    Ordering: overdue first, then soonest due day, then creation order.
    Uses the same defaults as ``aggregate`` so it acts on the summary's Top-1.
    """
    _require_aware(now)
    ledger = CompletionLedger.of(logs)
    today = DateKey.from_datetime(now, tz)

    candidates = outstanding_occurrences(tasks, ledger, today, tz, lookback_days, all_tasks)
    if not candidates:
        raise NoTaskToCompleteError()

    top = candidates[0]
    return complete(top.task, top.occurrence_key, ledger, now, tz)
