from pydantic import BaseModel, Field


class SectionCreate(BaseModel):
    """Schema for creating a section; order defaults to the end of the project."""
    title: str
    order: int | None = Field(default=None, ge=0)


class SectionUpdate(BaseModel):
    """Schema for renaming or reordering a section."""
    title: str | None = None
    order: int | None = Field(default=None, ge=0)


class SectionRead(BaseModel):
    id: str
    project_id: str
    title: str
    order: int

    model_config = {"from_attributes": True}
