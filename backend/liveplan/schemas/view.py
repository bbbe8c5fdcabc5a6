from pydantic import BaseModel

from liveplan.models import FilterSpec


class SavedViewCreate(BaseModel):
    name: str
    filter_spec: FilterSpec = FilterSpec()


class SavedViewRead(BaseModel):
    id: str
    name: str
    filter_spec: FilterSpec
    is_builtin: bool = False
