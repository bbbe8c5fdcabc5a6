"""
Task routes for the LivePlan API.
"""

from fastapi import APIRouter, Depends, status

from liveplan.database import get_planner
from liveplan.datekey import DateKey
from liveplan.schemas import (
    CompletionCreate,
    CompletionRead,
    NextOccurrenceRead,
    QuickAddCreate,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)
from liveplan.services.planner import Planner
from liveplan.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


def parse_date_param(value: str | None) -> DateKey | None:
    """Query-string DateKey; a malformed value is a ValidationError (422)."""
    return DateKey.parse(value) if value is not None else None


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: TaskCreate,
    planner: Planner = Depends(get_planner),
) -> TaskRead:
    """
    Create a new task.

    Rejects unknown projects, sections of another project, unknown tags and
    dependency sets that would close a cycle.
    """
    data = task_in.model_dump(exclude={"due_date", "recurrence_rule"})
    task = planner.add_task(due_date=task_in.due_date, recurrence_rule=task_in.recurrence_rule, **data)
    return TaskRead.from_task(task)


@router.post("/quick-add", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def quick_add_task(
    quick_add_in: QuickAddCreate,
    planner: Planner = Depends(get_planner),
) -> TaskRead:
    """
    Create a task from one line of text.

    Understands p1-p4, #tag, @project, /section and a day word (today,
    tomorrow, weekday names).
    """
    return TaskRead.from_task(planner.quick_add(quick_add_in.text))


@router.get("/", response_model=list[TaskRead])
def list_tasks(
    project_id: str | None = None,
    planner: Planner = Depends(get_planner),
) -> list[TaskRead]:
    """
    List tasks.

    Optionally filter by project_id.
    """
    return [TaskRead.from_task(task) for task in planner.list_tasks(project_id)]


@router.get("/{task_id}", response_model=TaskRead)
def get_task(task_id: str, planner: Planner = Depends(get_planner)) -> TaskRead:
    """Get a task by ID."""
    return TaskRead.from_task(planner.get_task(task_id))


@router.patch("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: str,
    task_in: TaskUpdate,
    planner: Planner = Depends(get_planner),
) -> TaskRead:
    """
    Update a task.

    The dependency set is re-validated only when it changes.
    """
    changes = {field: getattr(task_in, field) for field in task_in.model_fields_set}
    return TaskRead.from_task(planner.update_task(task_id, **changes))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: str, planner: Planner = Depends(get_planner)) -> None:
    """
    Delete a task.

    Its completion logs go with it and tasks that depended on it lose the edge.
    """
    planner.delete_task(task_id)


@router.get("/{task_id}/next-occurrence", response_model=NextOccurrenceRead)
def get_next_occurrence(
    task_id: str,
    after: str | None = None,
    planner: Planner = Depends(get_planner),
) -> NextOccurrenceRead:
    """First day strictly after ``after`` (default today) the task is due."""
    after_key = parse_date_param(after) or planner.today()
    return NextOccurrenceRead(
        task_id=task_id,
        after=after_key,
        next_occurrence=planner.next_occurrence(task_id, after_key),
    )


# =============================================================================
# Completions
# =============================================================================

@router.post(
    "/{task_id}/completions",
    response_model=CompletionRead,
    status_code=status.HTTP_201_CREATED,
)
def complete_task(
    task_id: str,
    completion_in: CompletionCreate | None = None,
    planner: Planner = Depends(get_planner),
):
    """
    Complete one occurrence of a task.

    Completing the same occurrence twice is a 409.
    """
    day = completion_in.date if completion_in is not None else None
    return planner.complete(task_id, day)


@router.delete("/{task_id}/completions", status_code=status.HTTP_204_NO_CONTENT)
def uncomplete_task(
    task_id: str,
    date: str | None = None,
    planner: Planner = Depends(get_planner),
) -> None:
    """Undo the completion of one occurrence (default today)."""
    planner.uncomplete(task_id, parse_date_param(date))
