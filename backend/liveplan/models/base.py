import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Entity(BaseModel):
    """Immutable domain record; changes are made with ``model_copy(update=...)``."""

    model_config = ConfigDict(frozen=True)

    id: str
