from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from liveplan.datekey import DateKey
from liveplan.models.base import utcnow


class CompletionLog(BaseModel):
    """
    Record that one occurrence of a task was completed.

    At most one log exists per (task_id, occurrence_key). Logs are inserted
    or removed, never edited.
    """

    model_config = ConfigDict(frozen=True)

    task_id: str
    occurrence_key: DateKey
    completed_at: datetime = Field(default_factory=utcnow)

    @property
    def id(self) -> str:
        return f"{self.task_id}_{self.occurrence_key}"

    @property
    def key(self) -> tuple[str, DateKey]:
        return (self.task_id, self.occurrence_key)
