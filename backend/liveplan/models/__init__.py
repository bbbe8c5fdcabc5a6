from liveplan.models.completion_log import CompletionLog
from liveplan.models.project import Project, ProjectStatus
from liveplan.models.recurrence import RecurrenceKind, RecurrenceRule
from liveplan.models.saved_view import DueRange, FilterSpec, SavedView, builtin_views
from liveplan.models.section import Section
from liveplan.models.tag import Tag
from liveplan.models.task import Priority, Task, TaskStatus

__all__ = [
    "CompletionLog",
    "DueRange",
    "FilterSpec",
    "Priority",
    "Project",
    "ProjectStatus",
    "RecurrenceKind",
    "RecurrenceRule",
    "SavedView",
    "Section",
    "Tag",
    "Task",
    "TaskStatus",
    "builtin_views",
]
