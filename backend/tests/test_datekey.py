"""
DateKey tests: parsing, timezone resolution and day arithmetic.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import BaseModel

from liveplan.datekey import DateKey
from liveplan.exceptions import ValidationError

UTC = timezone.utc
TOKYO = ZoneInfo("Asia/Tokyo")
NEW_YORK = ZoneInfo("America/New_York")
# Clocks jumped from 00:00 to 01:00 on 2018-11-04, so that day had no midnight
SAO_PAULO = ZoneInfo("America/Sao_Paulo")


class TestParse:

    @pytest.mark.parametrize("text", ["2024-01-01", "2024-02-29", "1999-12-31"])
    def test_round_trip(self, text):
        assert str(DateKey.parse(text)) == text

    @pytest.mark.parametrize(
        "text",
        ["", "2024-1-01", "2024/01/01", "2024-02-30", "2023-02-29", "2024-13-01", "20240101", " 2024-01-01"],
    )
    def test_rejects_malformed(self, text):
        with pytest.raises(ValidationError):
            DateKey.parse(text)

    def test_rejects_non_string(self):
        with pytest.raises(ValidationError):
            DateKey.parse(20240101)

    def test_wrapping_datetime_is_a_type_error(self):
        with pytest.raises(TypeError):
            DateKey(datetime(2024, 1, 1))


class TestTimezones:

    def test_same_instant_differs_by_zone(self):
        instant = datetime(2024, 6, 1, 20, 0, tzinfo=UTC)
        assert DateKey.from_datetime(instant, UTC) == DateKey.parse("2024-06-01")
        assert DateKey.from_datetime(instant, TOKYO) == DateKey.parse("2024-06-02")

    def test_naive_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            DateKey.from_datetime(datetime(2024, 6, 1, 12, 0), UTC)

    def test_today_uses_supplied_now(self):
        now = datetime(2024, 6, 1, 2, 0, tzinfo=UTC)
        assert DateKey.today(NEW_YORK, now=now) == DateKey.parse("2024-05-31")

    def test_to_datetime_is_local_midnight(self):
        start = DateKey.parse("2024-03-10").to_datetime(NEW_YORK)
        assert start.hour == 0
        assert start.tzinfo is NEW_YORK


class TestArithmetic:

    @pytest.mark.parametrize(
        "day, following",
        [
            ("2024-01-31", "2024-02-01"),
            ("2024-02-28", "2024-02-29"),
            ("2024-02-29", "2024-03-01"),
            ("2023-02-28", "2023-03-01"),
            ("2024-12-31", "2025-01-01"),
        ],
    )
    def test_next_and_previous_are_inverse(self, day, following):
        current = DateKey.parse(day)
        assert str(current.next_day(UTC)) == following
        assert current.next_day(UTC).previous_day(UTC) == current
        assert DateKey.parse(following).previous_day(UTC).next_day(UTC) == DateKey.parse(following)

    @pytest.mark.parametrize("day", ["2024-03-10", "2024-11-03", "2024-03-09", "2024-11-02"])
    def test_dst_transitions_move_one_calendar_day(self, day):
        current = DateKey.parse(day)
        assert current.days_until(current.next_day(NEW_YORK)) == 1
        assert current.previous_day(NEW_YORK).days_until(current) == 1

    def test_day_without_a_local_midnight(self):
        gap_day = DateKey.parse("2018-11-04")
        assert DateKey.parse("2018-11-03").next_day(SAO_PAULO) == gap_day
        assert DateKey.parse("2018-11-05").previous_day(SAO_PAULO) == gap_day
        assert gap_day.next_day(SAO_PAULO) == DateKey.parse("2018-11-05")
        assert gap_day.previous_day(SAO_PAULO) == DateKey.parse("2018-11-03")

    def test_add_days_and_days_until(self):
        start = DateKey.parse("2024-06-01")
        assert str(start.add_days(30, UTC)) == "2024-07-01"
        assert str(start.add_days(-1, UTC)) == "2024-05-31"
        assert start.days_until(DateKey.parse("2024-05-25")) == -7


class TestValueSemantics:

    def test_ordering_matches_calendar(self):
        days = [DateKey.parse(t) for t in ["2024-10-01", "2024-02-01", "2023-12-31"]]
        assert [str(d) for d in sorted(days)] == ["2023-12-31", "2024-02-01", "2024-10-01"]

    def test_hashable_and_equal(self):
        assert {DateKey.parse("2024-06-01"), DateKey(date(2024, 6, 1))} == {DateKey.parse("2024-06-01")}

    def test_immutable(self):
        with pytest.raises(AttributeError):
            DateKey.parse("2024-06-01")._value = date(2024, 1, 1)

    def test_pydantic_field(self):
        class Payload(BaseModel):
            day: DateKey

        payload = Payload(day="2024-06-01")
        assert payload.day == DateKey.parse("2024-06-01")
        assert payload.model_dump_json() == '{"day":"2024-06-01"}'

        with pytest.raises(ValueError):
            Payload(day="June 1st")
