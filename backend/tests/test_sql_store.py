"""
SqlStore tests against in-memory SQLite.
"""

from datetime import timezone
from zoneinfo import ZoneInfo

import pytest
from sqlmodel import SQLModel

from liveplan.database import SqlStore, create_db_engine, init_db
from liveplan.exceptions import DuplicateCompletionError, StorageError
from liveplan.models import (
    CompletionLog,
    FilterSpec,
    Priority,
    Project,
    RecurrenceRule,
    SavedView,
    Task,
)
from liveplan.services.planner import Planner

from conftest import FIXED_NOW, FakeClock, key, make_task


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlStore(engine)


class TestEntities:

    def test_task_round_trip(self, sql_store):
        task = make_task(
            "t1",
            title="Stretch",
            recurrence_rule=RecurrenceRule.weekly({1, 3}, key("2024-06-03")),
            depends_on={"t0"},
            tag_ids={"health"},
            priority=Priority.P2,
        )
        sql_store.put(task)
        assert sql_store.get(Task, "t1") == task

    def test_kinds_are_separate(self, sql_store):
        sql_store.put(Project(id="same", title="Home"))
        sql_store.put(SavedView(id="same", name="Errands", filter_spec=FilterSpec(tag_ids={"errand"})))
        assert sql_store.get(Project, "same").title == "Home"
        assert sql_store.get(SavedView, "same").filter_spec.tag_ids == frozenset({"errand"})
        assert sql_store.get(Task, "same") is None

    def test_put_replaces_and_delete_removes(self, sql_store):
        sql_store.put(Project(id="p", title="Home"))
        sql_store.put(Project(id="p", title="House"))
        assert [p.title for p in sql_store.list_all(Project)] == ["House"]
        sql_store.delete(Project, "p")
        assert sql_store.list_all(Project) == []


class TestCompletionLogs:

    def test_duplicate_rejected(self, sql_store):
        log = CompletionLog(task_id="t1", occurrence_key=key("2024-06-03"), completed_at=FIXED_NOW)
        sql_store.add_log(log)
        with pytest.raises(DuplicateCompletionError):
            sql_store.add_log(log)
        assert sql_store.list_logs() == [log]

    def test_completed_at_keeps_offset(self, sql_store):
        local = FIXED_NOW.astimezone(ZoneInfo("Asia/Tokyo"))
        sql_store.add_log(CompletionLog(task_id="t1", occurrence_key=key("2024-06-03"), completed_at=local))
        stored = sql_store.get_log("t1", key("2024-06-03"))
        assert stored.completed_at == FIXED_NOW
        assert stored.completed_at.utcoffset() is not None

    def test_list_and_remove(self, sql_store):
        for task_id, day in [("b", "2024-06-02"), ("a", "2024-06-03"), ("a", "2024-06-01")]:
            sql_store.add_log(CompletionLog(task_id=task_id, occurrence_key=key(day), completed_at=FIXED_NOW))
        assert [(l.task_id, str(l.occurrence_key)) for l in sql_store.list_logs("a")] == [
            ("a", "2024-06-01"),
            ("a", "2024-06-03"),
        ]
        sql_store.remove_log("a", key("2024-06-01"))
        assert len(sql_store.list_logs()) == 2


class TestTransactions:

    def test_failure_rolls_back(self, sql_store):
        with pytest.raises(RuntimeError):
            with sql_store.transaction():
                sql_store.put(Project(id="p", title="Home"))
                assert sql_store.get(Project, "p") is not None
                raise RuntimeError("boom")
        assert sql_store.get(Project, "p") is None

    def test_nested_transaction_joins_outer(self, sql_store):
        with sql_store.transaction():
            with sql_store.transaction():
                sql_store.put(Project(id="p", title="Home"))
        assert sql_store.get(Project, "p").title == "Home"

    def test_database_errors_are_storage_errors(self, engine, sql_store):
        SQLModel.metadata.drop_all(engine)
        with pytest.raises(StorageError):
            sql_store.list_all(Task)
        init_db(engine)


def test_planner_over_sql_store(sql_store):
    planner = Planner(sql_store, tz=timezone.utc, clock=FakeClock())
    task = planner.add_task("Stretch", recurrence_rule=RecurrenceRule.daily(key("2024-06-01")))
    planner.complete(task.id)
    with pytest.raises(DuplicateCompletionError):
        planner.complete(task.id)

    summary = planner.summary()
    assert (summary.overdue_count, summary.recurring_done, summary.recurring_total) == (2, 1, 1)
