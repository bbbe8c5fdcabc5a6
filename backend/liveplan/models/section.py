from pydantic import Field

from liveplan.models.base import Entity, new_id


class Section(Entity):
    """
    Section - purely organizational grouping inside one project.

    ``order`` is unique among the sections of a project.
    """

    id: str = Field(default_factory=new_id)
    project_id: str
    title: str
    order: int = 0
