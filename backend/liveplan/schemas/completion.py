from datetime import datetime
from pydantic import BaseModel

from liveplan.datekey import DateKey
from liveplan.schemas.task import TaskRead


class CompletionCreate(BaseModel):
    """
    Schema for completing a task.

    ``date`` selects the occurrence of a recurring task (default: today);
    one-off tasks ignore it.
    """
    date: DateKey | None = None


class CompletionRead(BaseModel):
    task_id: str
    occurrence_key: DateKey
    completed_at: datetime

    model_config = {"from_attributes": True}


class CompleteNextRead(BaseModel):
    task: TaskRead
    completion: CompletionRead
