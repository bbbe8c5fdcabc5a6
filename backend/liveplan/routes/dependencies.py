"""
Dependency routes for the LivePlan API.
"""

from fastapi import APIRouter, Depends, status

from liveplan.database import get_planner
from liveplan.models import Task
from liveplan.schemas import DependencyCreate, DependencyRead
from liveplan.services.planner import Planner
from liveplan.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=DependencyRead, status_code=status.HTTP_201_CREATED)
def create_dependency(
    dep_in: DependencyCreate,
    planner: Planner = Depends(get_planner),
) -> DependencyRead:
    """
    Create a new dependency (edge in the task graph).

    Performs cycle detection before writing; if the edge would close a
    cycle, returns 400 with the task ids along it.
    """
    planner.add_dependency(dep_in.task_id, dep_in.depends_on_id)
    return DependencyRead(task_id=dep_in.task_id, depends_on_id=dep_in.depends_on_id)


@router.get("/", response_model=list[DependencyRead])
def list_dependencies(
    task_id: str | None = None,
    planner: Planner = Depends(get_planner),
) -> list[DependencyRead]:
    """
    List dependencies.

    Optionally only edges where ``task_id`` is the blocked or the blocking task.
    """
    edges = [
        DependencyRead(task_id=task.id, depends_on_id=depends_on_id)
        for task in planner.store.list_all(Task)
        for depends_on_id in sorted(task.depends_on)
    ]
    if task_id is not None:
        edges = [e for e in edges if task_id in (e.task_id, e.depends_on_id)]

    logger.debug(f"Listed {len(edges)} dependencies")

    return edges


@router.delete("/{task_id}/{depends_on_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dependency(
    task_id: str,
    depends_on_id: str,
    planner: Planner = Depends(get_planner),
) -> None:
    """Delete a dependency."""
    planner.remove_dependency(task_id, depends_on_id)
