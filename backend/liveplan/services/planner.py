"""
Planner use cases.

Every mutation runs inside ``store.transaction()``: state is read, validated
(cycle check, completion dedup, ownership rules) and only then written, so a
rejected operation leaves the store untouched and concurrent writers cannot
race between the check and the write. Reads that combine several lists run
inside ``store.snapshot()`` so they see one consistent state.
"""

from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Iterable, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from liveplan.datekey import DateKey
from liveplan.exceptions import (
    CircularDependencyError,
    DuplicateCompletionError,
    EmptyTitleError,
    NotFoundError,
    ValidationError,
)
from liveplan.logging_config import get_logger
from liveplan.models import (
    CompletionLog,
    FilterSpec,
    Priority,
    Project,
    ProjectStatus,
    RecurrenceRule,
    SavedView,
    Section,
    Tag,
    Task,
    TaskStatus,
    builtin_views,
)
from liveplan.models.base import Entity
from liveplan.services import completion
from liveplan.services.graph import (
    build_dependency_graph,
    check_dependency_set,
    check_new_edge,
    dependents,
)
from liveplan.services.filters import apply_filter
from liveplan.services.occurrences import occurrence_key_for
from liveplan.services.quick_add import parse_quick_add
from liveplan.services.recurrence import next_occurrence
from liveplan.services.selection import SelectionPolicy, determine_scope, scope_tasks
from liveplan.services.summary import Summary, aggregate
from liveplan.store import Store

logger = get_logger(__name__)

_UNSET: Any = object()

E = TypeVar("E", bound=Entity)

# Task fields whose edits never touch the dependency graph
TASK_PLAIN_FIELDS = ("title", "due_date", "recurrence_rule", "priority", "tag_ids", "note")


def _clean_title(title: str, field: str = "title") -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise EmptyTitleError(field)
    return cleaned


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _rebuild(entity: E, changes: dict[str, Any]) -> E:
    """``entity`` with ``changes`` applied, validated like a freshly built one."""
    try:
        return type(entity).model_validate({**entity.model_dump(), **changes})
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid {type(entity).__name__} fields",
            details=[
                {"loc": [str(part) for part in error["loc"]], "msg": error["msg"], "type": error["type"]}
                for error in exc.errors()
            ],
        ) from exc


class Planner:
    """Use-case facade over a Store."""

    def __init__(
        self,
        store: Store,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = _utcnow,
        lookback_days: Optional[int] = 7,
        selection_policy: SelectionPolicy = SelectionPolicy.TODAY_OVERVIEW,
    ):
        self.store = store
        self.tz = tz
        self.clock = clock
        self.lookback_days = lookback_days
        self.selection_policy = selection_policy

    def today(self) -> DateKey:
        return DateKey.from_datetime(self.clock(), self.tz)

    # =========================================================================
    # Projects
    # =========================================================================

    def add_project(self, title: str, color_tag: Optional[str] = None, is_pinned: bool = False) -> Project:
        project = Project(
            title=_clean_title(title),
            color_tag=color_tag,
            is_pinned=is_pinned,
            created_at=self.clock(),
        )
        with self.store.transaction():
            self.store.put(project)
        logger.info(f"Created project: id={project.id} title='{project.title}'")
        return project

    def update_project(
        self,
        project_id: str,
        title: Optional[str] = None,
        color_tag: Any = _UNSET,
        is_pinned: Optional[bool] = None,
        status: Optional[ProjectStatus] = None,
    ) -> Project:
        with self.store.transaction():
            project = self.store.require(Project, project_id)
            changes: dict[str, Any] = {}
            if title is not None:
                changes["title"] = _clean_title(title)
            if color_tag is not _UNSET:
                changes["color_tag"] = color_tag
            if is_pinned is not None:
                changes["is_pinned"] = is_pinned
            if status is not None:
                changes["status"] = status
            project = _rebuild(project, changes)
            self.store.put(project)
        logger.info(f"Updated project {project_id}: {sorted(changes)}")
        return project

    def archive_project(self, project_id: str) -> Project:
        """Archive a project; its tasks drop out of summaries but are kept."""
        return self.update_project(project_id, status=ProjectStatus.ARCHIVED)

    def unarchive_project(self, project_id: str) -> Project:
        return self.update_project(project_id, status=ProjectStatus.ACTIVE)

    def list_projects(self, status: Optional[ProjectStatus] = None) -> list[Project]:
        """Projects, pinned first, optionally limited to one status."""
        projects = self.store.list_all(Project)
        if status is not None:
            projects = [p for p in projects if p.status == status]
        return sorted(projects, key=lambda p: not p.is_pinned)

    def delete_project(self, project_id: str) -> None:
        """Delete a project with its sections, tasks and their completion logs."""
        with self.store.transaction():
            project = self.store.require(Project, project_id)
            tasks = self.store.list_all(Task)
            doomed = {task.id for task in tasks if task.project_id == project_id}

            for section in self.store.list_all(Section):
                if section.project_id == project_id:
                    self.store.delete(Section, section.id)
            for task in tasks:
                if task.id in doomed:
                    self._drop_task(task.id)
                elif task.depends_on & doomed:
                    self.store.put(task.model_copy(update={"depends_on": task.depends_on - doomed}))
            self.store.delete(Project, project_id)

        logger.info(f"Deleted project {project_id} '{project.title}' with {len(doomed)} tasks")

    # =========================================================================
    # Sections
    # =========================================================================

    def add_section(self, project_id: str, title: str, order: Optional[int] = None) -> Section:
        with self.store.transaction():
            self.store.require(Project, project_id)
            taken = {s.order for s in self.store.list_all(Section) if s.project_id == project_id}
            if order is None:
                order = max(taken) + 1 if taken else 0
            elif order in taken:
                raise ValidationError(f"Section order {order} already used in project {project_id}")
            section = Section(project_id=project_id, title=_clean_title(title), order=order)
            self.store.put(section)
        logger.info(f"Created section: id={section.id} project={project_id} order={order}")
        return section

    def update_section(self, section_id: str, title: Optional[str] = None, order: Optional[int] = None) -> Section:
        with self.store.transaction():
            section = self.store.require(Section, section_id)
            changes: dict[str, Any] = {}
            if title is not None:
                changes["title"] = _clean_title(title)
            if order is not None and order != section.order:
                taken = {
                    s.order for s in self.store.list_all(Section)
                    if s.project_id == section.project_id and s.id != section_id
                }
                if order in taken:
                    raise ValidationError(f"Section order {order} already used in project {section.project_id}")
                changes["order"] = order
            section = section.model_copy(update=changes)
            self.store.put(section)
        return section

    def delete_section(self, section_id: str) -> None:
        """Delete a section; its tasks stay in the project, unsectioned."""
        with self.store.transaction():
            self.store.require(Section, section_id)
            for task in self.store.list_all(Task):
                if task.section_id == section_id:
                    self.store.put(task.model_copy(update={"section_id": None}))
            self.store.delete(Section, section_id)
        logger.info(f"Deleted section {section_id}")

    def list_sections(self, project_id: str) -> list[Section]:
        with self.store.snapshot() as view:
            view.require(Project, project_id)
            sections = [s for s in view.list_all(Section) if s.project_id == project_id]
        return sorted(sections, key=lambda s: s.order)

    # =========================================================================
    # Tags
    # =========================================================================

    def add_tag(self, name: str, color_token: Optional[str] = None) -> Tag:
        tag = Tag(name=_clean_title(name, "name"), color_token=color_token)
        with self.store.transaction():
            self.store.put(tag)
        logger.info(f"Created tag: id={tag.id} name='{tag.name}'")
        return tag

    def delete_tag(self, tag_id: str) -> None:
        with self.store.transaction():
            self.store.require(Tag, tag_id)
            for task in self.store.list_all(Task):
                if tag_id in task.tag_ids:
                    self.store.put(task.model_copy(update={"tag_ids": task.tag_ids - {tag_id}}))
            self.store.delete(Tag, tag_id)
        logger.info(f"Deleted tag {tag_id}")

    # =========================================================================
    # Tasks
    # =========================================================================

    def _check_placement(self, project_id: Optional[str], section_id: Optional[str]) -> None:
        if project_id is not None:
            self.store.require(Project, project_id)
        if section_id is not None:
            section = self.store.require(Section, section_id)
            if section.project_id != project_id:
                raise ValidationError(
                    f"Section {section_id} belongs to project {section.project_id}, not {project_id}"
                )

    def _check_tags(self, tag_ids: Iterable[str]) -> None:
        for tag_id in tag_ids:
            self.store.require(Tag, tag_id)

    def _check_dependencies(self, task_id: str, depends_on: Iterable[str]) -> None:
        depends_on = set(depends_on)
        for dependency_id in depends_on:
            if dependency_id != task_id:
                self.store.require(Task, dependency_id)
        graph = build_dependency_graph(self.store.list_all(Task))
        check_dependency_set(graph, task_id, depends_on)

    def add_task(
        self,
        title: str,
        project_id: Optional[str] = None,
        section_id: Optional[str] = None,
        due_date: Optional[DateKey] = None,
        recurrence_rule: Optional[RecurrenceRule] = None,
        depends_on: Iterable[str] = (),
        priority: Priority = Priority.P4,
        tag_ids: Iterable[str] = (),
        note: Optional[str] = None,
    ) -> Task:
        task = Task(
            title=_clean_title(title),
            project_id=project_id,
            section_id=section_id,
            due_date=due_date,
            recurrence_rule=recurrence_rule,
            depends_on=frozenset(depends_on),
            priority=priority,
            tag_ids=frozenset(tag_ids),
            note=note,
            created_at=self.clock(),
        )
        with self.store.transaction():
            self._check_placement(task.project_id, task.section_id)
            self._check_tags(task.tag_ids)
            if task.depends_on:
                self._check_dependencies(task.id, task.depends_on)
            self.store.put(task)

        logger.info(f"Created task: id={task.id} title='{task.title}' project={task.project_id}")
        return task

    def quick_add(self, text: str) -> Task:
        """
        Create a task from one line such as ``"Pay rent tomorrow p1 #bills @Home"``.

        Project and section are matched by title, case-insensitively, and
        must exist. Unknown tags are created.
        """
        parsed = parse_quick_add(text, self.today(), self.tz)
        with self.store.transaction():
            project_id = section_id = None
            if parsed.project_name is not None:
                project_id = self._find_named(self.store.list_all(Project), Project, parsed.project_name).id
            if parsed.section_name is not None:
                if project_id is None:
                    raise ValidationError(f"Section '{parsed.section_name}' needs a project (@name)")
                sections = [s for s in self.store.list_all(Section) if s.project_id == project_id]
                section_id = self._find_named(sections, Section, parsed.section_name).id

            tags_by_name = {tag.name.casefold(): tag for tag in self.store.list_all(Tag)}
            tag_ids = []
            for name in parsed.tags:
                tag = tags_by_name.get(name.casefold())
                if tag is None:
                    tag = Tag(name=name)
                    self.store.put(tag)
                    tags_by_name[name.casefold()] = tag
                    logger.info(f"Created tag from quick add: id={tag.id} name='{name}'")
                tag_ids.append(tag.id)

            return self.add_task(
                parsed.title,
                project_id=project_id,
                section_id=section_id,
                due_date=parsed.due_date,
                priority=parsed.priority or Priority.P4,
                tag_ids=tag_ids,
            )

    @staticmethod
    def _find_named(entities: Iterable[Any], kind: type, name: str) -> Any:
        for entity in entities:
            if entity.title.casefold() == name.casefold():
                return entity
        raise NotFoundError(kind.__name__, name)

    def update_task(self, task_id: str, **changes: Any) -> Task:
        """
        Apply field changes to a task.

        Accepts ``title``, ``project_id``, ``section_id``, ``due_date``,
        ``recurrence_rule``, ``depends_on``, ``priority``, ``tag_ids`` and
        ``note``. Only a change to ``depends_on`` runs the cycle check.

        Changing ``due_date`` or ``recurrence_rule`` re-derives the status
        and moves a one-off completion to the task's new occurrence key.
        """
        allowed = set(TASK_PLAIN_FIELDS) | {"project_id", "section_id", "depends_on"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Unknown task fields: {sorted(unknown)}")

        if "title" in changes:
            changes["title"] = _clean_title(changes["title"])
        if "priority" in changes and changes["priority"] is None:
            raise ValidationError("priority cannot be null")
        for field in ("depends_on", "tag_ids"):
            if field in changes:
                changes[field] = frozenset(changes[field] or ())

        with self.store.transaction():
            task = self.store.require(Task, task_id)
            updated = _rebuild(task, changes)
            if "project_id" in changes or "section_id" in changes:
                self._check_placement(updated.project_id, updated.section_id)
            if "tag_ids" in changes:
                self._check_tags(updated.tag_ids)
            if updated.depends_on != task.depends_on:
                self._check_dependencies(task_id, updated.depends_on)
            if updated.due_date != task.due_date or updated.recurrence_rule != task.recurrence_rule:
                updated = self._reconcile_completion(task, updated)
            self.store.put(updated)

        logger.info(f"Updated task {task_id}: {sorted(changes)}")
        return updated

    def _reconcile_completion(self, old: Task, updated: Task) -> Task:
        """
        Status and logs after a schedule edit.

        Recurring tasks are always OPEN and keep their day-keyed logs. A
        completed one-off task carries its log to the new occurrence key;
        a one-off task is COMPLETED_ONCE exactly when its key is logged.
        """
        if updated.is_recurring:
            return updated.model_copy(update={"status": TaskStatus.OPEN})

        new_key = occurrence_key_for(updated, None, self.tz)
        if not old.is_recurring and old.is_completed_once:
            old_key = occurrence_key_for(old, None, self.tz)
            log = self.store.get_log(old.id, old_key)
            if old_key != new_key and log is not None:
                self.store.remove_log(old.id, old_key)
                if self.store.get_log(old.id, new_key) is None:
                    self.store.add_log(log.model_copy(update={"occurrence_key": new_key}))
                logger.debug(f"Moved completion of {old.id} from {old_key} to {new_key}")

        done = self.store.get_log(updated.id, new_key) is not None
        return updated.model_copy(update={"status": TaskStatus.COMPLETED_ONCE if done else TaskStatus.OPEN})

    def add_dependency(self, task_id: str, depends_on_id: str) -> Task:
        """Record that ``task_id`` is blocked by ``depends_on_id``."""
        logger.info(f"Creating dependency: {task_id} -> {depends_on_id}")
        with self.store.transaction():
            task = self.store.require(Task, task_id)
            if depends_on_id in task.depends_on:
                return task
            if depends_on_id != task_id:
                self.store.require(Task, depends_on_id)

            graph = build_dependency_graph(self.store.list_all(Task))
            logger.debug(f"Running cycle detection for {task_id} -> {depends_on_id}")
            try:
                check_new_edge(graph, task_id, depends_on_id)
            except CircularDependencyError as exc:
                logger.warning(f"Dependency {task_id} -> {depends_on_id} rejected: {exc}")
                raise

            task = task.model_copy(update={"depends_on": task.depends_on | {depends_on_id}})
            self.store.put(task)
        return task

    def remove_dependency(self, task_id: str, depends_on_id: str) -> Task:
        with self.store.transaction():
            task = self.store.require(Task, task_id)
            if depends_on_id not in task.depends_on:
                raise NotFoundError("Dependency", f"{task_id}/{depends_on_id}")
            task = task.model_copy(update={"depends_on": task.depends_on - {depends_on_id}})
            self.store.put(task)
        logger.info(f"Deleted dependency: {task_id} -> {depends_on_id}")
        return task

    def _drop_task(self, task_id: str) -> None:
        for log in self.store.list_logs(task_id):
            self.store.remove_log(log.task_id, log.occurrence_key)
        self.store.delete(Task, task_id)

    def delete_task(self, task_id: str) -> list[str]:
        """
        Delete a task and its completion logs.

        Tasks that depended on it lose that edge. Returns their ids.
        """
        with self.store.transaction():
            task = self.store.require(Task, task_id)
            tasks = self.store.list_all(Task)
            affected = dependents(build_dependency_graph(tasks), task_id)
            by_id = {t.id: t for t in tasks}
            for dependent_id in affected:
                dependent = by_id[dependent_id]
                self.store.put(dependent.model_copy(update={"depends_on": dependent.depends_on - {task_id}}))
            self._drop_task(task_id)

        logger.info(f"Deleted task {task_id} '{task.title}'; cleared edges on {len(affected)} dependents")
        return affected

    def get_task(self, task_id: str) -> Task:
        return self.store.require(Task, task_id)

    def list_tasks(self, project_id: Optional[str] = None) -> list[Task]:
        tasks = self.store.list_all(Task)
        if project_id is not None:
            tasks = [t for t in tasks if t.project_id == project_id]
        logger.debug(f"Listed {len(tasks)} tasks" + (f" for project={project_id}" if project_id else ""))
        return tasks

    def next_occurrence(self, task_id: str, after: Optional[DateKey] = None) -> Optional[DateKey]:
        """Next day the task is due after ``after`` (default today)."""
        task = self.store.require(Task, task_id)
        after = after or self.today()
        if task.recurrence_rule is None:
            return task.due_date if task.due_date is not None and task.due_date > after else None
        return next_occurrence(task.recurrence_rule, after)

    # =========================================================================
    # Completion
    # =========================================================================

    def complete(self, task_id: str, day: Optional[DateKey] = None) -> CompletionLog:
        now = self.clock()
        with self.store.transaction():
            task = self.store.require(Task, task_id)
            try:
                result = completion.complete(
                    task,
                    day or DateKey.from_datetime(now, self.tz),
                    self.store.list_logs(task_id),
                    now,
                    self.tz,
                )
            except (DuplicateCompletionError, ValidationError) as exc:
                logger.warning(f"Completion of {task_id} rejected: {exc}")
                raise
            self._apply(result, added=True)

        logger.info(f"Completed task {task_id} for {result.log.occurrence_key}")
        return result.log

    def uncomplete(self, task_id: str, day: Optional[DateKey] = None) -> CompletionLog:
        with self.store.transaction():
            task = self.store.require(Task, task_id)
            result = completion.uncomplete(
                task,
                day or self.today(),
                self.store.list_logs(task_id),
                self.tz,
            )
            self._apply(result, added=False)

        logger.info(f"Uncompleted task {task_id} for {result.log.occurrence_key}")
        return result.log

    def complete_next(
        self,
        project_id: Optional[str] = None,
        policy: Optional[SelectionPolicy] = None,
    ) -> tuple[Task, CompletionLog]:
        """Complete the Top-1 occurrence of the summary with the same scope."""
        now = self.clock()
        with self.store.transaction():
            tasks = self.store.list_all(Task)
            projects = self.store.list_all(Project)
            selection = determine_scope(policy or self.selection_policy, projects, project_id)
            result = completion.complete_next(
                scope_tasks(tasks, projects, selection),
                self.store.list_logs(),
                now,
                self.tz,
                self.lookback_days,
                tasks,
            )
            self._apply(result, added=True)

        logger.info(f"Completed next task {result.task.id} for {result.log.occurrence_key}")
        return result.task, result.log

    def _apply(self, result: completion.CompletionResult, added: bool) -> None:
        if added:
            self.store.add_log(result.log)
        else:
            self.store.remove_log(result.log.task_id, result.log.occurrence_key)
        self.store.put(result.task)

    # =========================================================================
    # Summary & views
    # =========================================================================

    def summary(
        self,
        day: Optional[DateKey] = None,
        project_id: Optional[str] = None,
        policy: Optional[SelectionPolicy] = None,
    ) -> Summary:
        """
        Summary for ``day`` (default today).

        ``project_id`` limits it to one project; otherwise ``policy`` (default
        the planner's) picks the pinned project or the overview of active ones.
        """
        with self.store.snapshot() as view:
            tasks = view.list_all(Task)
            projects = view.list_all(Project)
            logs = view.list_logs()

        selection = determine_scope(policy or self.selection_policy, projects, project_id)
        return aggregate(
            scope_tasks(tasks, projects, selection),
            logs,
            day or self.today(),
            self.tz,
            self.lookback_days,
            selection,
            tasks,
        )

    def add_saved_view(self, name: str, filter_spec: Optional[FilterSpec] = None) -> SavedView:
        view = SavedView(name=_clean_title(name, "name"), filter_spec=filter_spec or FilterSpec())
        with self.store.transaction():
            self.store.put(view)
        logger.info(f"Created saved view: id={view.id} name='{view.name}'")
        return view

    def list_saved_views(self) -> list[SavedView]:
        return builtin_views() + self.store.list_all(SavedView)

    def get_saved_view(self, view_id: str) -> SavedView:
        for view in builtin_views():
            if view.id == view_id:
                return view
        return self.store.require(SavedView, view_id)

    def delete_saved_view(self, view_id: str) -> None:
        with self.store.transaction():
            self.store.require(SavedView, view_id)
            self.store.delete(SavedView, view_id)

    def apply_saved_view(self, view_id: str, day: Optional[DateKey] = None) -> list[Task]:
        view = self.get_saved_view(view_id)
        return apply_filter(self.store.list_all(Task), view.filter_spec, day or self.today(), self.tz)
