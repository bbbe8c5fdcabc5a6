from datetime import datetime
from enum import Enum

from pydantic import Field

from liveplan.models.base import Entity, new_id, utcnow


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPLETED = "completed"


class Project(Entity):
    """Project - owns sections and tasks. Only active projects feed summaries."""

    id: str = Field(default_factory=new_id)
    title: str
    color_tag: str | None = None
    is_pinned: bool = False
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == ProjectStatus.ACTIVE
