from pydantic import Field

from liveplan.models.base import Entity, new_id


class Tag(Entity):
    """Tag - many-to-many label for tasks."""

    id: str = Field(default_factory=new_id)
    name: str
    color_token: str | None = None
