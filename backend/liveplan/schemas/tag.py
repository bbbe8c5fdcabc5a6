from pydantic import BaseModel


class TagCreate(BaseModel):
    name: str
    color_token: str | None = None


class TagRead(BaseModel):
    id: str
    name: str
    color_token: str | None

    model_config = {"from_attributes": True}
