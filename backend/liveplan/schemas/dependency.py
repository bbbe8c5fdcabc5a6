from pydantic import BaseModel


class DependencyCreate(BaseModel):
    """Schema for creating a new dependency."""
    task_id: str        # The blocked task
    depends_on_id: str  # The blocker task


class DependencyRead(BaseModel):
    """Schema for reading a dependency edge."""
    task_id: str
    depends_on_id: str
