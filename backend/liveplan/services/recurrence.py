"""
Recurrence evaluation.

``occurs_on`` is a direct predicate on one day (no forward search), so a rule
that never fires cannot make a caller loop. ``next_occurrence`` is analytic
for daily/monthly rules and scans at most one interval of weeks for weekly.
"""

import calendar
from datetime import date, timedelta

from liveplan.datekey import DateKey
from liveplan.models import RecurrenceKind, RecurrenceRule


def _week_start(day: date) -> date:
    return day - timedelta(days=day.isoweekday() - 1)


def _months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def _clamped_day(year: int, month: int, day: int) -> int:
    return min(day, calendar.monthrange(year, month)[1])


def occurs_on(rule: RecurrenceRule, day: DateKey) -> bool:
    """Whether ``rule`` has an occurrence on ``day``."""
    anchor = rule.anchor.date
    target = day.date
    if target < anchor:
        return False

    if rule.kind == RecurrenceKind.DAILY:
        return (target - anchor).days % rule.interval == 0

    if rule.kind == RecurrenceKind.WEEKLY:
        if target.isoweekday() not in rule.weekdays:
            return False
        weeks = (_week_start(target) - _week_start(anchor)).days // 7
        return weeks % rule.interval == 0

    # Monthly
    months = _months_between(anchor, target)
    if months % rule.interval != 0:
        return False
    return target.day == _clamped_day(target.year, target.month, anchor.day)


def next_occurrence(rule: RecurrenceRule, after: DateKey) -> DateKey:
    """First occurrence strictly after ``after`` (or the anchor if later)."""
    anchor = rule.anchor.date
    start = after.date + timedelta(days=1)
    if start < anchor:
        start = anchor

    if rule.kind == RecurrenceKind.DAILY:
        offset = (start - anchor).days % rule.interval
        if offset:
            start += timedelta(days=rule.interval - offset)
        return DateKey(start)

    if rule.kind == RecurrenceKind.WEEKLY:
        # Any window of `interval` whole weeks contains an active week.
        for step in range(7 * rule.interval + 7):
            candidate = DateKey(start + timedelta(days=step))
            if occurs_on(rule, candidate):
                return candidate
        raise AssertionError("weekly rule without weekdays")

    # Monthly
    months = max(0, _months_between(anchor, start))
    months += (-months) % rule.interval
    while True:
        year = anchor.year + (anchor.month - 1 + months) // 12
        month = (anchor.month - 1 + months) % 12 + 1
        candidate = date(year, month, _clamped_day(year, month, anchor.day))
        if candidate >= start:
            return DateKey(candidate)
        months += rule.interval


def occurrences_between(rule: RecurrenceRule, first: DateKey, last: DateKey) -> list[DateKey]:
    """Occurrence days in the closed range ``[first, last]``."""
    days = []
    current = first.date
    while current <= last.date:
        key = DateKey(current)
        if occurs_on(rule, key):
            days.append(key)
        current += timedelta(days=1)
    return days
