"""
Completion engine tests: occurrence keys, dedup and "complete next".
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from liveplan.exceptions import (
    DuplicateCompletionError,
    NoTaskToCompleteError,
    NotFoundError,
    ValidationError,
)
from liveplan.models import CompletionLog, RecurrenceRule, TaskStatus
from liveplan.services.completion import complete, complete_next, uncomplete

from conftest import FIXED_NOW, key, make_task

UTC = timezone.utc


def daily(task_id="daily", anchor="2024-06-01", **fields):
    return make_task(task_id, recurrence_rule=RecurrenceRule.daily(key(anchor)), **fields)


class TestRecurringCompletion:

    def test_completes_one_occurrence(self):
        task = daily()
        result = complete(task, key("2024-06-03"), [], FIXED_NOW, UTC)
        assert result.log == CompletionLog(task_id="daily", occurrence_key=key("2024-06-03"), completed_at=FIXED_NOW)
        assert result.task == task
        assert result.task.status == TaskStatus.OPEN

    def test_duplicate_rejected(self):
        task = daily()
        log = complete(task, key("2024-06-03"), [], FIXED_NOW, UTC).log
        with pytest.raises(DuplicateCompletionError) as exc_info:
            complete(task, key("2024-06-03"), [log], FIXED_NOW, UTC)
        assert exc_info.value.status_code == 409

    def test_other_occurrence_still_completable(self):
        task = daily()
        log = complete(task, key("2024-06-03"), [], FIXED_NOW, UTC).log
        result = complete(task, key("2024-06-02"), [log], FIXED_NOW, UTC)
        assert result.log.occurrence_key == key("2024-06-02")

    def test_uncomplete_then_complete_again(self):
        task = daily()
        log = complete(task, key("2024-06-03"), [], FIXED_NOW, UTC).log
        removed = uncomplete(task, key("2024-06-03"), [log], UTC).log
        assert removed == log
        again = complete(task, key("2024-06-03"), [], FIXED_NOW, UTC)
        assert again.log.key == log.key

    def test_day_without_occurrence_rejected(self):
        task = make_task("weekly", recurrence_rule=RecurrenceRule.weekly({1}, key("2024-06-03")))
        with pytest.raises(ValidationError):
            complete(task, key("2024-06-04"), [], FIXED_NOW, UTC)

    def test_recurring_needs_a_day(self):
        with pytest.raises(ValidationError):
            complete(daily(), None, [], FIXED_NOW, UTC)

    def test_naive_completion_time_rejected(self):
        with pytest.raises(ValidationError):
            complete(daily(), key("2024-06-03"), [], datetime(2024, 6, 3, 9, 0), UTC)


class TestOneOffCompletion:

    def test_keyed_by_due_date_and_flips_status(self):
        task = make_task("report", due_date=key("2024-06-01"))
        result = complete(task, key("2024-06-03"), [], FIXED_NOW, UTC)
        assert result.log.occurrence_key == key("2024-06-01")
        assert result.task.status == TaskStatus.COMPLETED_ONCE

    def test_second_completion_rejected(self):
        task = make_task("report", due_date=key("2024-06-01"))
        result = complete(task, None, [], FIXED_NOW, UTC)
        with pytest.raises(DuplicateCompletionError):
            complete(result.task, None, [result.log], FIXED_NOW, UTC)

    def test_undated_keyed_by_creation_day_in_zone(self):
        task = make_task("inbox", created_at=datetime(2024, 5, 1, 2, 0, tzinfo=UTC))
        result = complete(task, None, [], FIXED_NOW, ZoneInfo("America/New_York"))
        assert result.log.occurrence_key == key("2024-04-30")

    def test_uncomplete_reopens(self):
        task = make_task("report", due_date=key("2024-06-01"))
        done = complete(task, None, [], FIXED_NOW, UTC)
        reopened = uncomplete(done.task, None, [done.log], UTC)
        assert reopened.task.status == TaskStatus.OPEN

    def test_uncomplete_without_log(self):
        with pytest.raises(NotFoundError):
            uncomplete(make_task("report", due_date=key("2024-06-01")), None, [], UTC)


class TestCompleteNext:

    def test_overdue_beats_due_today(self):
        overdue = make_task("X", due_date=key("2024-06-01"))
        today = make_task("Y", due_date=key("2024-06-03"))
        result = complete_next([today, overdue], [], FIXED_NOW, UTC)
        assert result.task.id == "X"
        assert result.log.occurrence_key == key("2024-06-01")

    def test_oldest_missed_recurring_occurrence_first(self):
        result = complete_next([daily()], [], FIXED_NOW, UTC, lookback_days=7)
        assert result.log.occurrence_key == key("2024-06-01")

    def test_creation_order_breaks_ties(self):
        first = make_task("first", due_date=key("2024-06-03"))
        second = make_task("second", due_date=key("2024-06-03"))
        assert complete_next([second, first], [], FIXED_NOW, UTC).task.id == "first"

    def test_nothing_outstanding(self):
        future = make_task("later", due_date=key("2024-06-10"))
        with pytest.raises(NoTaskToCompleteError):
            complete_next([future], [], FIXED_NOW, UTC)

    def test_skips_completed_occurrences(self):
        task = daily(anchor="2024-06-03")
        log = CompletionLog(task_id=task.id, occurrence_key=key("2024-06-03"), completed_at=FIXED_NOW)
        with pytest.raises(NoTaskToCompleteError):
            complete_next([task], [log], FIXED_NOW, UTC)
