"""
Saved-view filtering.

A FilterSpec is evaluated the same way wherever it is consumed; date ranges
are resolved against the caller-supplied day.
"""

from datetime import tzinfo
from typing import Iterable

from liveplan.datekey import DateKey
from liveplan.models import DueRange, FilterSpec, Task, TaskStatus


def _is_blocked(task: Task, by_id: dict[str, Task]) -> bool:
    return any(
        dep.status == TaskStatus.OPEN and not dep.is_recurring
        for dep in (by_id.get(dep_id) for dep_id in task.depends_on)
        if dep is not None
    )


def _matches_due_range(task: Task, due_range: DueRange, today: DateKey, week_end: DateKey) -> bool:
    if due_range == DueRange.NONE:
        return True
    if task.due_date is None:
        return False
    if due_range == DueRange.TODAY:
        return task.due_date == today
    if due_range == DueRange.NEXT_7_DAYS:
        return today <= task.due_date < week_end
    return task.due_date < today


def matches(task: Task, spec: FilterSpec, today: DateKey, week_end: DateKey, by_id: dict[str, Task]) -> bool:
    if spec.project_ids is not None and task.project_id not in spec.project_ids:
        return False
    if spec.tag_ids is not None and not (spec.tag_ids & task.tag_ids):
        return False
    if spec.section_ids is not None and task.section_id not in spec.section_ids:
        return False
    # P1 is the highest priority and the lowest number
    if spec.priority_at_most is not None and task.priority > spec.priority_at_most:
        return False
    if spec.priority_at_least is not None and task.priority < spec.priority_at_least:
        return False
    if task.status not in spec.statuses:
        return False
    if not spec.include_recurring and task.is_recurring:
        return False
    if spec.exclude_blocked and _is_blocked(task, by_id):
        return False
    return _matches_due_range(task, spec.due_range, today, week_end)


def apply_filter(tasks: Iterable[Task], spec: FilterSpec, today: DateKey, tz: tzinfo) -> list[Task]:
    """Tasks matching ``spec``, ordered by due date (undated last), then creation."""
    tasks = list(tasks)
    by_id = {task.id: task for task in tasks}
    week_end = today.add_days(7, tz)
    selected = [task for task in tasks if matches(task, spec, today, week_end, by_id)]
    selected.sort(key=lambda t: (t.due_date is None, t.due_date or today, t.created_at, t.id))
    return selected
