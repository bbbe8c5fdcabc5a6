from liveplan.schemas.project import ProjectCreate, ProjectUpdate, ProjectRead
from liveplan.schemas.section import SectionCreate, SectionUpdate, SectionRead
from liveplan.schemas.tag import TagCreate, TagRead
from liveplan.schemas.task import TaskCreate, TaskUpdate, TaskRead, NextOccurrenceRead, QuickAddCreate
from liveplan.schemas.dependency import DependencyCreate, DependencyRead
from liveplan.schemas.completion import CompletionCreate, CompletionRead, CompleteNextRead
from liveplan.schemas.view import SavedViewCreate, SavedViewRead
from liveplan.schemas.summary import SummaryItemRead, SummaryRead

__all__ = [
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectRead",
    "SectionCreate",
    "SectionUpdate",
    "SectionRead",
    "TagCreate",
    "TagRead",
    "TaskCreate",
    "TaskUpdate",
    "TaskRead",
    "NextOccurrenceRead",
    "QuickAddCreate",
    "DependencyCreate",
    "DependencyRead",
    "CompletionCreate",
    "CompletionRead",
    "CompleteNextRead",
    "SavedViewCreate",
    "SavedViewRead",
    "SummaryItemRead",
    "SummaryRead",
]
