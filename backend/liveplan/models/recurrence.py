from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from liveplan.datekey import DateKey

WORKDAYS = frozenset({1, 2, 3, 4, 5})


class RecurrenceKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RecurrenceRule(BaseModel):
    """
    Stateless recurrence pattern anchored on a calendar day.

    - daily, interval N: every N days from the anchor
    - weekly: the listed ISO weekdays (1=Monday .. 7=Sunday) of every
      N-th week counted from the anchor's week
    - monthly: the anchor's day of month every N months, clamped to
      the last day of shorter months
    """

    model_config = ConfigDict(frozen=True)

    kind: RecurrenceKind
    anchor: DateKey
    interval: int = Field(default=1, ge=1)
    weekdays: frozenset[int] = frozenset()

    @model_validator(mode="after")
    def _check_weekdays(self):
        if any(day < 1 or day > 7 for day in self.weekdays):
            raise ValueError("weekdays must be ISO weekday numbers 1..7")
        if self.kind == RecurrenceKind.WEEKLY and not self.weekdays:
            raise ValueError("weekly recurrence needs at least one weekday")
        return self

    @field_serializer("weekdays")
    def _serialize_weekdays(self, weekdays: frozenset[int]) -> list[int]:
        return sorted(weekdays)

    @classmethod
    def daily(cls, anchor: DateKey, interval: int = 1) -> "RecurrenceRule":
        return cls(kind=RecurrenceKind.DAILY, anchor=anchor, interval=interval)

    @classmethod
    def every_n_days(cls, n: int, anchor: DateKey) -> "RecurrenceRule":
        return cls.daily(anchor, interval=n)

    @classmethod
    def weekly(cls, weekdays, anchor: DateKey, interval: int = 1) -> "RecurrenceRule":
        return cls(
            kind=RecurrenceKind.WEEKLY,
            anchor=anchor,
            interval=interval,
            weekdays=frozenset(weekdays),
        )

    @classmethod
    def on_workdays(cls, anchor: DateKey) -> "RecurrenceRule":
        return cls.weekly(WORKDAYS, anchor)

    @classmethod
    def monthly(cls, anchor: DateKey, interval: int = 1) -> "RecurrenceRule":
        return cls(kind=RecurrenceKind.MONTHLY, anchor=anchor, interval=interval)
