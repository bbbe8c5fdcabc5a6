"""
Project and section routes for the LivePlan API.
"""

from fastapi import APIRouter, Depends, Query, status

from liveplan.database import get_planner
from liveplan.exceptions import NotFoundError
from liveplan.models import Project, ProjectStatus, Section
from liveplan.schemas import (
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    SectionCreate,
    SectionRead,
    SectionUpdate,
)
from liveplan.services.planner import Planner
from liveplan.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    planner: Planner = Depends(get_planner),
) -> Project:
    """Create a new project."""
    return planner.add_project(**project_in.model_dump())


@router.get("/", response_model=list[ProjectRead])
def list_projects(
    project_status: ProjectStatus | None = Query(default=None, alias="status"),
    planner: Planner = Depends(get_planner),
) -> list[Project]:
    """List projects, pinned first. Optionally filter by status."""
    projects = planner.list_projects(project_status)
    logger.debug(f"Listed {len(projects)} projects")
    return projects


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(project_id: str, planner: Planner = Depends(get_planner)) -> Project:
    """Get a project by ID."""
    return planner.store.require(Project, project_id)


@router.patch("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: str,
    project_in: ProjectUpdate,
    planner: Planner = Depends(get_planner),
) -> Project:
    """Update a project."""
    return planner.update_project(project_id, **project_in.model_dump(exclude_unset=True))


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: str, planner: Planner = Depends(get_planner)) -> None:
    """Delete a project with its sections, tasks and their completion logs."""
    planner.delete_project(project_id)


@router.post("/{project_id}/archive", response_model=ProjectRead)
def archive_project(project_id: str, planner: Planner = Depends(get_planner)) -> Project:
    """Archive a project. Its tasks are kept but leave summaries."""
    return planner.archive_project(project_id)


@router.post("/{project_id}/unarchive", response_model=ProjectRead)
def unarchive_project(project_id: str, planner: Planner = Depends(get_planner)) -> Project:
    return planner.unarchive_project(project_id)


# =============================================================================
# Sections
# =============================================================================

@router.post(
    "/{project_id}/sections",
    response_model=SectionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_section(
    project_id: str,
    section_in: SectionCreate,
    planner: Planner = Depends(get_planner),
) -> Section:
    """Create a section; without an explicit order it goes last."""
    return planner.add_section(project_id, section_in.title, section_in.order)


@router.get("/{project_id}/sections", response_model=list[SectionRead])
def list_sections(project_id: str, planner: Planner = Depends(get_planner)) -> list[Section]:
    """List a project's sections in display order."""
    return planner.list_sections(project_id)


@router.patch("/{project_id}/sections/{section_id}", response_model=SectionRead)
def update_section(
    project_id: str,
    section_id: str,
    section_in: SectionUpdate,
    planner: Planner = Depends(get_planner),
) -> Section:
    _require_section_in(planner, project_id, section_id)
    return planner.update_section(section_id, section_in.title, section_in.order)


@router.delete("/{project_id}/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_section(
    project_id: str,
    section_id: str,
    planner: Planner = Depends(get_planner),
) -> None:
    """Delete a section; its tasks stay in the project."""
    _require_section_in(planner, project_id, section_id)
    planner.delete_section(section_id)


def _require_section_in(planner: Planner, project_id: str, section_id: str) -> None:
    section = planner.store.require(Section, section_id)
    if section.project_id != project_id:
        raise NotFoundError("Section", section_id)
