"""
Settings tests: environment parsing and how values reach the planner.
"""

from datetime import timezone

import pytest
from pydantic import ValidationError

from liveplan.config import Settings
from liveplan.models import RecurrenceRule
from liveplan.services.planner import Planner
from liveplan.services.selection import SelectionPolicy
from liveplan.store import MemoryStore

from conftest import FakeClock, key


class TestLookback:

    def test_defaults_to_a_week(self):
        assert Settings(_env_file=None).overdue_lookback_days == 7

    def test_none_reaches_back_to_the_anchor(self):
        settings = Settings(_env_file=None, overdue_lookback_days=None)
        assert settings.overdue_lookback_days is None

        planner = Planner(
            MemoryStore(),
            tz=timezone.utc,
            clock=FakeClock(),
            lookback_days=settings.overdue_lookback_days,
        )
        planner.add_task("Stretch", recurrence_rule=RecurrenceRule.daily(key("2024-05-01")))
        # 2024-05-01 .. 2024-06-02
        assert planner.summary().overdue_count == 33

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, overdue_lookback_days=-1)


class TestEnvironment:

    def test_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("LIVEPLAN_TIMEZONE", "Asia/Tokyo")
        monkeypatch.setenv("LIVEPLAN_SELECTION_POLICY", "pinned_first")
        monkeypatch.setenv("LIVEPLAN_OVERDUE_LOOKBACK_DAYS", "3")
        settings = Settings(_env_file=None)
        assert settings.tzinfo.key == "Asia/Tokyo"
        assert settings.selection_policy == SelectionPolicy.PINNED_FIRST
        assert settings.overdue_lookback_days == 3
