"""
Saved-view routes for the LivePlan API.
"""

from fastapi import APIRouter, Depends, status

from liveplan.database import get_planner
from liveplan.models import SavedView, builtin_views
from liveplan.routes.tasks import parse_date_param
from liveplan.schemas import SavedViewCreate, SavedViewRead, TaskRead
from liveplan.services.planner import Planner

router = APIRouter()

BUILTIN_VIEW_IDS = frozenset(view.id for view in builtin_views())


def _read(view: SavedView) -> SavedViewRead:
    return SavedViewRead(
        id=view.id,
        name=view.name,
        filter_spec=view.filter_spec,
        is_builtin=view.id in BUILTIN_VIEW_IDS,
    )


@router.post("/", response_model=SavedViewRead, status_code=status.HTTP_201_CREATED)
def create_view(view_in: SavedViewCreate, planner: Planner = Depends(get_planner)) -> SavedViewRead:
    return _read(planner.add_saved_view(view_in.name, view_in.filter_spec))


@router.get("/", response_model=list[SavedViewRead])
def list_views(planner: Planner = Depends(get_planner)) -> list[SavedViewRead]:
    """Built-in views first, then user views."""
    return [_read(view) for view in planner.list_saved_views()]


@router.get("/{view_id}", response_model=SavedViewRead)
def get_view(view_id: str, planner: Planner = Depends(get_planner)) -> SavedViewRead:
    return _read(planner.get_saved_view(view_id))


@router.delete("/{view_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_view(view_id: str, planner: Planner = Depends(get_planner)) -> None:
    planner.delete_saved_view(view_id)


@router.get("/{view_id}/tasks", response_model=list[TaskRead])
def list_view_tasks(
    view_id: str,
    date: str | None = None,
    planner: Planner = Depends(get_planner),
) -> list[TaskRead]:
    """Tasks matching the view, resolved against ``date`` (default today)."""
    tasks = planner.apply_saved_view(view_id, parse_date_param(date))
    return [TaskRead.from_task(task) for task in tasks]
