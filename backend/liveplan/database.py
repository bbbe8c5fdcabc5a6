"""
SQLModel-backed store.

Each entity is kept as a JSON payload row keyed by (kind, id); completion logs
get their own table whose composite primary key (task_id, occurrence_key)
enforces the one-log-per-occurrence rule in the database as well.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from liveplan.config import get_settings
from liveplan.datekey import DateKey
from liveplan.exceptions import DuplicateCompletionError, StorageError
from liveplan.logging_config import get_logger
from liveplan.models import CompletionLog
from liveplan.models.base import utcnow
from liveplan.services.planner import Planner
from liveplan.store import ENTITY_KINDS, Store, listing_order

logger = get_logger(__name__)


class EntityRow(SQLModel, table=True):
    """One serialized Project/Section/Tag/Task/SavedView."""

    __tablename__ = "entities"

    kind: str = Field(primary_key=True)
    id: str = Field(primary_key=True)
    payload: str
    updated_at: datetime = Field(default_factory=utcnow)


class CompletionLogRow(SQLModel, table=True):
    """
    Completion of one occurrence.

    Composite primary key: at most one row per (task_id, occurrence_key).
    """

    __tablename__ = "completion_logs"

    task_id: str = Field(primary_key=True)
    occurrence_key: str = Field(primary_key=True)
    completed_at: str  # ISO-8601 with offset; SQLite drops tzinfo on DATETIME

    def to_log(self) -> CompletionLog:
        return CompletionLog(
            task_id=self.task_id,
            occurrence_key=DateKey.parse(self.occurrence_key),
            completed_at=datetime.fromisoformat(self.completed_at),
        )


def create_db_engine(database_url: Optional[str] = None):
    """Create the engine; in-memory SQLite shares one connection across threads."""
    settings = get_settings()
    url = database_url or settings.database_url
    kwargs = {"echo": settings.debug}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def init_db(engine) -> None:
    """Initialize database tables."""
    SQLModel.metadata.create_all(engine)


class SqlStore(Store):
    """Store over a SQLAlchemy engine with single-writer transactions."""

    def __init__(self, engine):
        self.engine = engine
        self._lock = threading.RLock()
        self._local = threading.local()

    def _current(self) -> Optional[Session]:
        return getattr(self._local, "session", None)

    @contextmanager
    def transaction(self):
        with self._lock:
            if self._current() is not None:
                yield self
                return

            session = Session(self.engine)
            self._local.session = session
            try:
                yield self
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StorageError(exc) from exc
            except BaseException:
                session.rollback()
                raise
            finally:
                self._local.session = None
                session.close()

    @contextmanager
    def snapshot(self):
        # Holding the writer lock keeps commits out until the reads are done
        with self._lock:
            if self._current() is not None:
                yield self
                return

            session = Session(self.engine)
            self._local.session = session
            try:
                yield self
            finally:
                self._local.session = None
                session.rollback()
                session.close()

    @contextmanager
    def _session(self):
        session = self._current()
        try:
            if session is not None:
                yield session
            else:
                with Session(self.engine) as session:
                    yield session
                    session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(exc) from exc

    # -- entities ------------------------------------------------------------

    def get(self, kind, entity_id):
        with self._session() as session:
            row = session.get(EntityRow, (ENTITY_KINDS[kind], entity_id))
            if row is None:
                return None
            return kind.model_validate_json(row.payload)

    def list_all(self, kind):
        with self._session() as session:
            rows = session.exec(select(EntityRow).where(EntityRow.kind == ENTITY_KINDS[kind])).all()
            entities = [kind.model_validate_json(row.payload) for row in rows]
        return sorted(entities, key=listing_order)

    def put(self, entity):
        with self._session() as session:
            session.merge(EntityRow(
                kind=ENTITY_KINDS[type(entity)],
                id=entity.id,
                payload=entity.model_dump_json(),
                updated_at=utcnow(),
            ))
            session.flush()

    def delete(self, kind, entity_id):
        with self._session() as session:
            row = session.get(EntityRow, (ENTITY_KINDS[kind], entity_id))
            if row is not None:
                session.delete(row)
                session.flush()

    # -- completion logs -----------------------------------------------------

    def get_log(self, task_id, occurrence_key):
        with self._session() as session:
            row = session.get(CompletionLogRow, (task_id, str(occurrence_key)))
            return row.to_log() if row is not None else None

    def list_logs(self, task_id=None):
        with self._session() as session:
            query = select(CompletionLogRow)
            if task_id is not None:
                query = query.where(CompletionLogRow.task_id == task_id)
            query = query.order_by(CompletionLogRow.task_id, CompletionLogRow.occurrence_key)
            return [row.to_log() for row in session.exec(query).all()]

    def add_log(self, log):
        with self._session() as session:
            if session.get(CompletionLogRow, (log.task_id, str(log.occurrence_key))) is not None:
                raise DuplicateCompletionError(log.task_id, str(log.occurrence_key))
            session.add(CompletionLogRow(
                task_id=log.task_id,
                occurrence_key=str(log.occurrence_key),
                completed_at=log.completed_at.isoformat(),
            ))
            try:
                session.flush()
            except IntegrityError as exc:
                logger.warning(f"Concurrent completion rejected: {log.id}")
                raise DuplicateCompletionError(log.task_id, str(log.occurrence_key)) from exc

    def remove_log(self, task_id, occurrence_key):
        with self._session() as session:
            row = session.get(CompletionLogRow, (task_id, str(occurrence_key)))
            if row is not None:
                session.delete(row)
                session.flush()


_planner: Planner | None = None


def get_planner() -> Planner:
    """
    Dependency that returns the process-wide planner.

    Built lazily over a SqlStore on the configured database; tests override it
    with a MemoryStore-backed planner.
    """
    global _planner
    if _planner is None:
        settings = get_settings()
        engine = create_db_engine()
        init_db(engine)
        _planner = Planner(
            SqlStore(engine),
            tz=settings.tzinfo,
            lookback_days=settings.overdue_lookback_days,
            selection_policy=settings.selection_policy,
        )
        logger.info(f"Planner ready on {settings.database_url} (tz={settings.timezone})")
    return _planner
