"""
Summary aggregation tests.
"""

from datetime import timezone

from liveplan.models import CompletionLog, RecurrenceRule, TaskStatus
from liveplan.services.completion import complete_next
from liveplan.services.summary import aggregate

from conftest import FIXED_NOW, key, make_task

UTC = timezone.utc
TODAY = key("2024-06-03")


def log(task_id, day):
    return CompletionLog(task_id=task_id, occurrence_key=key(day), completed_at=FIXED_NOW)


class TestCounters:

    def test_daily_task_with_missed_days(self):
        task = make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-06-01")))
        summary = aggregate([task], [], TODAY, UTC)
        assert summary.overdue_count == 2
        assert summary.recurring_done == 0
        assert summary.recurring_total == 1
        assert summary.outstanding_total == 3

    def test_completed_today_counts_as_done(self):
        task = make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-06-01")))
        summary = aggregate([task], [log("daily", "2024-06-03")], TODAY, UTC)
        assert summary.recurring_done == 1
        assert summary.recurring_total == 1
        assert summary.outstanding_total == 2

    def test_recurring_not_due_today_is_not_in_total(self):
        # Wednesdays only; 2024-06-03 is a Monday
        task = make_task("weekly", recurrence_rule=RecurrenceRule.weekly({3}, key("2024-06-05")))
        summary = aggregate([task], [], TODAY, UTC)
        assert summary.recurring_total == 0
        assert summary.outstanding_total == 0

    def test_one_off_tasks(self):
        tasks = [
            make_task("overdue", due_date=key("2024-05-30")),
            make_task("today", due_date=TODAY),
            make_task("future", due_date=key("2024-06-04")),
            make_task("undated"),
            make_task("done", due_date=key("2024-06-01"), status=TaskStatus.COMPLETED_ONCE),
        ]
        summary = aggregate(tasks, [], TODAY, UTC)
        assert [item.task.id for item in summary.display_list] == ["overdue", "today"]
        assert summary.overdue_count == 1
        assert summary.recurring_total == 0

    def test_outstanding_total_matches_display_list(self):
        tasks = [
            make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-05-01"))),
            make_task("report", due_date=key("2024-06-02")),
        ]
        summary = aggregate(tasks, [log("daily", "2024-05-30")], TODAY, UTC)
        assert summary.outstanding_total == len(summary.display_list)


class TestLookback:

    def test_window_limits_missed_occurrences(self):
        task = make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-05-01")))
        summary = aggregate([task], [], TODAY, UTC, lookback_days=7)
        assert summary.outstanding_total == 8
        assert summary.overdue_count == 7
        assert summary.display_list[0].occurrence_key == key("2024-05-27")

    def test_no_window_goes_back_to_anchor(self):
        task = make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-05-01")))
        summary = aggregate([task], [], TODAY, UTC, lookback_days=None)
        assert summary.outstanding_total == 34


class TestOrdering:

    def test_overdue_then_day_then_creation(self):
        tasks = [
            make_task("b_today", due_date=TODAY),
            make_task("a_today", due_date=TODAY),
            make_task("old", due_date=key("2024-05-20")),
            make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-06-02"))),
        ]
        summary = aggregate(tasks, [], TODAY, UTC)
        order = [(item.task.id, str(item.occurrence_key)) for item in summary.display_list]
        assert order == [
            ("old", "2024-05-20"),
            ("daily", "2024-06-02"),
            ("b_today", "2024-06-03"),
            ("a_today", "2024-06-03"),
            ("daily", "2024-06-03"),
        ]

    def test_top_is_what_complete_next_completes(self):
        tasks = [
            make_task("Y", due_date=TODAY),
            make_task("X", due_date=key("2024-06-01")),
            make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-06-02"))),
        ]
        summary = aggregate(tasks, [], TODAY, UTC)
        result = complete_next(tasks, [], FIXED_NOW, UTC, lookback_days=7)
        assert summary.top.task.id == result.task.id == "X"
        assert summary.top.occurrence_key == result.log.occurrence_key

    def test_default_lookback_matches_complete_next(self):
        tasks = [
            make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-05-01"))),
            make_task("report", due_date=key("2024-05-10")),
        ]
        summary = aggregate(tasks, [], TODAY, UTC)
        result = complete_next(tasks, [], FIXED_NOW, UTC)
        assert summary.top.task.id == result.task.id == "report"
        assert summary.top.occurrence_key == result.log.occurrence_key == key("2024-05-10")


class TestBlocking:

    def test_open_dependency_flags_item(self):
        tasks = [
            make_task("A", due_date=key("2024-06-10")),
            make_task("B", due_date=TODAY, depends_on={"A"}),
        ]
        summary = aggregate(tasks, [], TODAY, UTC)
        assert summary.blocked_count == 1
        assert summary.display_list[0].is_blocked

    def test_completed_dependency_unblocks(self):
        tasks = [
            make_task("A", due_date=key("2024-06-01"), status=TaskStatus.COMPLETED_ONCE),
            make_task("B", due_date=TODAY, depends_on={"A"}),
        ]
        summary = aggregate(tasks, [log("A", "2024-06-01")], TODAY, UTC)
        assert summary.blocked_count == 0

    def test_recurring_dependency_blocks_until_done_today(self):
        tasks = [
            make_task("standup", recurrence_rule=RecurrenceRule.daily(TODAY)),
            make_task("B", due_date=TODAY, depends_on={"standup"}),
        ]
        assert aggregate(tasks, [], TODAY, UTC).blocked_count == 1
        assert aggregate(tasks, [log("standup", "2024-06-03")], TODAY, UTC).blocked_count == 0


class TestPurity:

    def test_same_inputs_same_summary(self):
        tasks = [
            make_task("daily", recurrence_rule=RecurrenceRule.daily(key("2024-06-01"))),
            make_task("report", due_date=key("2024-06-02")),
        ]
        logs = [log("daily", "2024-06-02")]
        first = aggregate(tasks, logs, TODAY, UTC)
        second = aggregate(list(reversed(tasks)), list(logs), TODAY, UTC)
        assert first.to_dict() == second.to_dict()

    def test_to_dict_shape(self):
        task = make_task("report", title="Write report", project_id="p1", due_date=TODAY)
        payload = aggregate([task], [], TODAY, UTC).to_dict()
        assert payload == {
            "date": "2024-06-03",
            "outstanding_total": 1,
            "overdue_count": 0,
            "recurring_done": 0,
            "recurring_total": 0,
            "blocked_count": 0,
            "scope": "today_overview",
            "fallback_reason": None,
            "display_list": [{
                "task_id": "report",
                "title": "Write report",
                "project_id": "p1",
                "occurrence_key": "2024-06-03",
                "is_overdue": False,
                "is_recurring": False,
                "is_blocked": False,
            }],
        }

    def test_blockers_outside_the_scoped_list_still_count(self):
        blocker = make_task("A", project_id="other", due_date=key("2024-06-10"))
        blocked = make_task("B", project_id="home", due_date=TODAY, depends_on={"A"})
        assert aggregate([blocked], [], TODAY, UTC).blocked_count == 0
        assert aggregate([blocked], [], TODAY, UTC, all_tasks=[blocker, blocked]).blocked_count == 1
