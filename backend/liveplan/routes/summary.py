"""
Summary routes: the read and write surface widgets and intents use.
"""

from fastapi import APIRouter, Depends, status

from liveplan.config import get_settings
from liveplan.database import get_planner
from liveplan.privacy import PrivacyMode, mask_summary
from liveplan.routes.tasks import parse_date_param
from liveplan.schemas import CompleteNextRead, CompletionRead, SummaryRead, TaskRead
from liveplan.services.planner import Planner
from liveplan.services.selection import SelectionPolicy

router = APIRouter()


@router.get("/summary", response_model=SummaryRead)
def get_summary(
    date: str | None = None,
    privacy: PrivacyMode = PrivacyMode.FULL,
    project_id: str | None = None,
    policy: SelectionPolicy | None = None,
    planner: Planner = Depends(get_planner),
) -> dict:
    """
    Counters and ranked display list for one day (default today).

    ``policy`` overrides the configured scope selection; ``project_id``
    overrides both. Titles are masked according to ``privacy`` after
    aggregation.
    """
    summary = planner.summary(parse_date_param(date), project_id, policy)
    return mask_summary(summary, privacy, get_settings().title_max_length)


@router.post(
    "/complete-next",
    response_model=CompleteNextRead,
    status_code=status.HTTP_201_CREATED,
)
def complete_next(
    project_id: str | None = None,
    policy: SelectionPolicy | None = None,
    planner: Planner = Depends(get_planner),
) -> CompleteNextRead:
    """
    Complete the current Top-1 occurrence of the matching summary.

    404 when nothing is outstanding.
    """
    task, log = planner.complete_next(project_id, policy)
    return CompleteNextRead(
        task=TaskRead.from_task(task),
        completion=CompletionRead.model_validate(log, from_attributes=True),
    )
