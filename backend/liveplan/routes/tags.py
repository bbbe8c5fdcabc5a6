"""
Tag routes for the LivePlan API.
"""

from fastapi import APIRouter, Depends, status

from liveplan.database import get_planner
from liveplan.models import Tag
from liveplan.schemas import TagCreate, TagRead
from liveplan.services.planner import Planner

router = APIRouter()


@router.post("/", response_model=TagRead, status_code=status.HTTP_201_CREATED)
def create_tag(tag_in: TagCreate, planner: Planner = Depends(get_planner)) -> Tag:
    return planner.add_tag(tag_in.name, tag_in.color_token)


@router.get("/", response_model=list[TagRead])
def list_tags(planner: Planner = Depends(get_planner)) -> list[Tag]:
    return planner.store.list_all(Tag)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(tag_id: str, planner: Planner = Depends(get_planner)) -> None:
    """Delete a tag and detach it from every task."""
    planner.delete_tag(tag_id)
