"""
Summary scope selection.

Decides which tasks a summary (and "complete next") looks at:

- today overview: unfiled tasks plus tasks in active projects
- pinned project: only the pinned project's tasks, when it is active
- project: an explicitly requested project

A pinned-first policy falls back to the overview and says why, so a widget
can explain an unexpected list.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from liveplan.models import Project, Task


class SelectionPolicy(str, Enum):
    PINNED_FIRST = "pinned_first"
    TODAY_OVERVIEW = "today_overview"
    AUTO = "auto"


class SummaryScope(str, Enum):
    TODAY_OVERVIEW = "today_overview"
    PINNED_PROJECT = "pinned_project"
    PROJECT = "project"


class FallbackReason(str, Enum):
    NO_PINNED_PROJECT = "no_pinned_project"
    PINNED_NOT_ACTIVE = "pinned_not_active"


@dataclass(frozen=True)
class Selection:
    scope: SummaryScope = SummaryScope.TODAY_OVERVIEW
    project_id: Optional[str] = None
    fallback_reason: Optional[FallbackReason] = None


def determine_scope(
    policy: SelectionPolicy,
    projects: Iterable[Project],
    project_id: Optional[str] = None,
) -> Selection:
    """Resolve ``policy`` against the current projects."""
    if project_id is not None:
        return Selection(SummaryScope.PROJECT, project_id)
    if policy == SelectionPolicy.TODAY_OVERVIEW:
        return Selection()

    pinned = [p for p in projects if p.is_pinned]
    if not pinned:
        return Selection(fallback_reason=FallbackReason.NO_PINNED_PROJECT)
    for project in pinned:
        if project.is_active:
            return Selection(SummaryScope.PINNED_PROJECT, project.id)
    return Selection(fallback_reason=FallbackReason.PINNED_NOT_ACTIVE)


def scope_tasks(tasks: Iterable[Task], projects: Iterable[Project], selection: Selection) -> list[Task]:
    if selection.scope != SummaryScope.TODAY_OVERVIEW:
        return [t for t in tasks if t.project_id == selection.project_id]
    active = {p.id for p in projects if p.is_active}
    return [t for t in tasks if t.project_id is None or t.project_id in active]
