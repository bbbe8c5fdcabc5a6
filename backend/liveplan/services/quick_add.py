"""
Quick-add parsing: one line of text into task fields.

Recognized tokens (everything else stays in the title):
- priority: p1 .. p4, case-insensitive, as a whole word
- tags: #name (repeatable)
- project: @name
- section: /name or ::name
- day: today, tomorrow, or a weekday name (mon .. sunday), meaning the next
  such day after today

Parsing never fails. If nothing but tokens is left, the trimmed input is
used as the title.
"""

import re
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from liveplan.datekey import DateKey
from liveplan.models import Priority

PRIORITY_RE = re.compile(r"(?i)\bp([1-4])\b")
TAG_RE = re.compile(r"#(\w+)")
PROJECT_RE = re.compile(r"@(\w+)")
SECTION_RE = re.compile(r"(?:/|::)(\w+)")

RELATIVE_DAYS = {"today": 0, "tomorrow": 1}
WEEKDAYS = {
    "mon": 0, "monday": 0,
    "tue": 1, "tuesday": 1,
    "wed": 2, "wednesday": 2,
    "thu": 3, "thursday": 3,
    "fri": 4, "friday": 4,
    "sat": 5, "saturday": 5,
    "sun": 6, "sunday": 6,
}
DAY_RE = re.compile(r"(?i)(?<!\S)(" + "|".join(list(RELATIVE_DAYS) + list(WEEKDAYS)) + r")(?!\S)")


@dataclass(frozen=True)
class QuickAdd:
    title: str
    due_date: Optional[DateKey] = None
    priority: Optional[Priority] = None
    tags: tuple[str, ...] = ()
    project_name: Optional[str] = None
    section_name: Optional[str] = None

    @property
    def has_tokens(self) -> bool:
        return any((
            self.due_date is not None,
            self.priority is not None,
            self.tags,
            self.project_name is not None,
            self.section_name is not None,
        ))


def _resolve_day(word: str, today: DateKey, tz: tzinfo) -> DateKey:
    word = word.lower()
    if word in RELATIVE_DAYS:
        return today.add_days(RELATIVE_DAYS[word], tz)
    ahead = (WEEKDAYS[word] - today.date.weekday()) % 7 or 7
    return today.add_days(ahead, tz)


def parse_quick_add(text: str, today: DateKey, tz: tzinfo) -> QuickAdd:
    """Split ``text`` into a title and the tokens it carries."""
    if not text or not text.strip():
        return QuickAdd(title="")

    remaining = text.strip()

    priority = None
    match = PRIORITY_RE.search(remaining)
    if match:
        priority = Priority(int(match.group(1)))
        remaining = PRIORITY_RE.sub("", remaining)

    tags = tuple(TAG_RE.findall(remaining))
    remaining = TAG_RE.sub("", remaining)

    project_name = None
    match = PROJECT_RE.search(remaining)
    if match:
        project_name = match.group(1)
        remaining = PROJECT_RE.sub("", remaining)

    section_name = None
    match = SECTION_RE.search(remaining)
    if match:
        section_name = match.group(1)
        remaining = SECTION_RE.sub("", remaining)

    due_date = None
    match = DAY_RE.search(remaining)
    if match:
        due_date = _resolve_day(match.group(1), today, tz)
        remaining = remaining[: match.start()] + remaining[match.end():]

    title = " ".join(remaining.split())
    return QuickAdd(
        title=title or text.strip(),
        due_date=due_date,
        priority=priority,
        tags=tags,
        project_name=project_name,
        section_name=section_name,
    )
