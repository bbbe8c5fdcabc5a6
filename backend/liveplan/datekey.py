"""
Calendar-day keys.

A DateKey names one calendar day as ``YYYY-MM-DD``. It is derived from an
instant and a timezone, so the same instant can map to different keys in
different zones. Keys compare lexicographically, which matches calendar order.
"""

import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from functools import total_ordering
from typing import Any, Optional

from pydantic_core import core_schema

from liveplan.exceptions import ValidationError

_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@total_ordering
class DateKey:
    """Immutable ``YYYY-MM-DD`` calendar-day identifier."""

    __slots__ = ("_value",)

    def __init__(self, value: date):
        if isinstance(value, datetime):
            raise TypeError("DateKey wraps a date; use DateKey.from_datetime for instants")
        object.__setattr__(self, "_value", value)

    def __setattr__(self, name, value):
        raise AttributeError("DateKey is immutable")

    # -- construction --------------------------------------------------------

    @classmethod
    def from_datetime(cls, ts: datetime, tz: tzinfo) -> "DateKey":
        """Key of the calendar day ``ts`` falls on in ``tz``."""
        if ts.tzinfo is None or ts.utcoffset() is None:
            raise ValidationError("Timestamp must be timezone-aware")
        return cls(ts.astimezone(tz).date())

    @classmethod
    def today(cls, tz: tzinfo, now: Optional[datetime] = None) -> "DateKey":
        if now is None:
            now = datetime.now(timezone.utc)
        return cls.from_datetime(now, tz)

    @classmethod
    def parse(cls, text: str) -> "DateKey":
        """Parse a strict ``YYYY-MM-DD`` string."""
        if not isinstance(text, str) or not _DATE_KEY_RE.match(text):
            raise ValidationError(f"Invalid DateKey format: {text!r}")
        try:
            return cls(date.fromisoformat(text))
        except ValueError as exc:
            raise ValidationError(f"Invalid DateKey: {text!r}") from exc

    # -- conversion ----------------------------------------------------------

    @property
    def date(self) -> date:
        return self._value

    def to_datetime(self, tz: tzinfo) -> datetime:
        """Start of this day in ``tz`` as an aware datetime."""
        return datetime(self._value.year, self._value.month, self._value.day, tzinfo=tz)

    def next_day(self, tz: tzinfo) -> "DateKey":
        return self._shift(1, tz)

    def previous_day(self, tz: tzinfo) -> "DateKey":
        return self._shift(-1, tz)

    def add_days(self, days: int, tz: tzinfo) -> "DateKey":
        return self._shift(days, tz)

    def _shift(self, days: int, tz: tzinfo) -> "DateKey":
        # Wall-clock arithmetic, then re-resolved through UTC so a missing
        # local midnight (DST gap) still lands on the intended day.
        start = self.to_datetime(tz) + timedelta(days=days)
        return DateKey.from_datetime(start.astimezone(timezone.utc), tz)

    def days_until(self, other: "DateKey") -> int:
        """Signed number of calendar days from ``self`` to ``other``."""
        return (other._value - self._value).days

    # -- value semantics -----------------------------------------------------

    def __str__(self) -> str:
        return self._value.isoformat()

    def __repr__(self) -> str:
        return f"DateKey('{self}')"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DateKey):
            return self._value == other._value
        return NotImplemented

    def __lt__(self, other: "DateKey") -> bool:
        if isinstance(other, DateKey):
            return self._value < other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __reduce__(self):
        return (DateKey, (self._value,))

    # -- pydantic integration ------------------------------------------------

    @classmethod
    def _coerce(cls, value: Any) -> "DateKey":
        if isinstance(value, DateKey):
            return value
        if isinstance(value, str):
            try:
                return cls.parse(value)
            except ValidationError as exc:
                raise ValueError(exc.message) from exc
        raise ValueError(f"Expected a YYYY-MM-DD string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type, handler):
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema, handler):
        return {"type": "string", "format": "date", "pattern": _DATE_KEY_RE.pattern}
