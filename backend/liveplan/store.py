"""
Store interface - the persistence collaborator the planner talks to.

The engine is schema-agnostic: a store only needs keyed CRUD for the entity
types below, completion-log insert/remove, and ``transaction()``, an atomic
read-modify-write scope that serializes writers, and ``snapshot()``, a read
scope whose reads all see the same committed state.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import ContextManager, Optional, TypeVar

from liveplan.datekey import DateKey
from liveplan.exceptions import DuplicateCompletionError, NotFoundError
from liveplan.models import CompletionLog, Project, SavedView, Section, Tag, Task
from liveplan.models.base import Entity

E = TypeVar("E", bound=Entity)

ENTITY_KINDS: dict[type, str] = {
    Project: "project",
    Section: "section",
    Tag: "tag",
    Task: "task",
    SavedView: "saved_view",
}


def listing_order(entity: Entity):
    created_at = getattr(entity, "created_at", None)
    return (
        getattr(entity, "order", 0),
        created_at.isoformat() if created_at is not None else "",
        entity.id,
    )


class Store(ABC):
    """Abstract persistence collaborator."""

    @abstractmethod
    def transaction(self) -> ContextManager["Store"]:
        """Serialize a read-validate-write sequence; all or nothing."""

    @abstractmethod
    def snapshot(self) -> ContextManager["Store"]:
        """Read scope in which several reads see one consistent state."""

    @abstractmethod
    def get(self, kind: type[E], entity_id: str) -> Optional[E]:
        ...

    @abstractmethod
    def list_all(self, kind: type[E]) -> list[E]:
        ...

    @abstractmethod
    def put(self, entity: Entity) -> None:
        """Insert or replace by id."""

    @abstractmethod
    def delete(self, kind: type[E], entity_id: str) -> None:
        ...

    @abstractmethod
    def get_log(self, task_id: str, occurrence_key: DateKey) -> Optional[CompletionLog]:
        ...

    @abstractmethod
    def list_logs(self, task_id: Optional[str] = None) -> list[CompletionLog]:
        ...

    @abstractmethod
    def add_log(self, log: CompletionLog) -> None:
        """Insert a log; DuplicateCompletionError if the pair already exists."""

    @abstractmethod
    def remove_log(self, task_id: str, occurrence_key: DateKey) -> None:
        ...

    def require(self, kind: type[E], entity_id: str) -> E:
        entity = self.get(kind, entity_id)
        if entity is None:
            raise NotFoundError(kind.__name__, entity_id)
        return entity


class MemoryStore(Store):
    """
    In-process store.

    Used by tests and by callers that keep their own persistence. A failed
    transaction restores the state captured when it started.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._entities: dict[type, dict[str, Entity]] = {kind: {} for kind in ENTITY_KINDS}
        self._logs: dict[tuple[str, DateKey], CompletionLog] = {}

    @contextmanager
    def transaction(self):
        with self._lock:
            entities = {kind: dict(rows) for kind, rows in self._entities.items()}
            logs = dict(self._logs)
            try:
                yield self
            except BaseException:
                self._entities = entities
                self._logs = logs
                raise

    @contextmanager
    def snapshot(self):
        view = type(self)()
        with self._lock:
            view._entities = {kind: dict(rows) for kind, rows in self._entities.items()}
            view._logs = dict(self._logs)
        yield view

    def get(self, kind, entity_id):
        with self._lock:
            return self._entities[kind].get(entity_id)

    def list_all(self, kind):
        with self._lock:
            return sorted(self._entities[kind].values(), key=listing_order)

    def put(self, entity):
        with self._lock:
            self._entities[type(entity)][entity.id] = entity

    def delete(self, kind, entity_id):
        with self._lock:
            self._entities[kind].pop(entity_id, None)

    def get_log(self, task_id, occurrence_key):
        with self._lock:
            return self._logs.get((task_id, occurrence_key))

    def list_logs(self, task_id=None):
        with self._lock:
            logs = [log for log in self._logs.values() if task_id is None or log.task_id == task_id]
        return sorted(logs, key=lambda log: (log.task_id, log.occurrence_key))

    def add_log(self, log):
        with self._lock:
            if log.key in self._logs:
                raise DuplicateCompletionError(log.task_id, str(log.occurrence_key))
            self._logs[log.key] = log

    def remove_log(self, task_id, occurrence_key):
        with self._lock:
            self._logs.pop((task_id, occurrence_key), None)
