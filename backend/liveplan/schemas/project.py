from datetime import datetime
from pydantic import BaseModel

from liveplan.models import ProjectStatus


class ProjectCreate(BaseModel):
    """Schema for creating a new project."""
    title: str
    color_tag: str | None = None
    is_pinned: bool = False


class ProjectUpdate(BaseModel):
    """Schema for updating a project."""
    title: str | None = None
    color_tag: str | None = None
    is_pinned: bool | None = None
    status: ProjectStatus | None = None


class ProjectRead(BaseModel):
    """Schema for reading a project."""
    id: str
    title: str
    color_tag: str | None
    is_pinned: bool
    status: ProjectStatus
    created_at: datetime

    model_config = {"from_attributes": True}
