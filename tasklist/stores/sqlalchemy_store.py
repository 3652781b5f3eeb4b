"""
Relational task store built on SQLAlchemy.

Titles are stored with a ``normalized_title`` column under a UNIQUE
constraint, so two writers racing past the use-case lookup cannot both
commit the same title; the loser gets ``IntegrityError``.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.task import TITLE_MAX_LENGTH, Task, normalize_title
from .base import TaskNotFoundError, parse_task_id

logger = logging.getLogger(__name__)

Base = declarative_base()


class TaskRecord(Base):
    """Row shape of a stored task."""
    __tablename__ = "tasks"

    # Insertion sequence; orders rows sharing a created_at
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, index=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    normalized_title = Column(String(TITLE_MAX_LENGTH), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(TITLE_MAX_LENGTH), nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            description=self.description,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<TaskRecord(id={self.id}, title='{self.title}', status='{self.status}')>"


def create_store_engine(database_url: str, echo: bool = False):
    """Create an engine for ``database_url``.

    SQLite URLs get thread-sharing enabled for FastAPI's threadpool, and an
    in-memory SQLite database is pinned to a single connection.
    """
    url = make_url(database_url)
    kwargs = {"echo": echo}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        kwargs["pool_pre_ping"] = True

    return create_engine(database_url, **kwargs)


class SqlAlchemyTaskStore:
    """Task store persisting to any SQLAlchemy-supported database."""

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize the engine and create the schema.

        Args:
            database_url: SQLAlchemy database URL
            echo: Echo SQL statements to the log
        """
        self.engine = create_store_engine(database_url, echo=echo)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to initialize task store: {e}")
            raise

        logger.info(f"Task store initialized on {self.engine.url.render_as_string(hide_password=True)}")

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Session scope: commit on success, rollback and re-raise on error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Session rollback due to error: {e}")
            raise
        finally:
            session.close()

    def save(self, task: Task) -> Task:
        now = datetime.now()
        record = TaskRecord(
            id=str(uuid4()),
            title=task.title,
            normalized_title=normalize_title(task.title or ""),
            description=task.description,
            status=task.status,
            created_at=now,
            updated_at=now,
        )

        with self.get_session() as session:
            session.add(record)
            session.flush()
            stored = record.to_domain()

        logger.debug(f"Inserted task {stored.id}")
        return stored

    def find_all(self) -> List[Task]:
        with self.get_session() as session:
            records = session.query(TaskRecord).order_by(TaskRecord.created_at, TaskRecord.seq).all()
            return [record.to_domain() for record in records]

    def find_by_id(self, task_id: str) -> Optional[Task]:
        key = parse_task_id(task_id)
        if key is None:
            logger.debug(f"Ignoring malformed task id: {task_id!r}")
            return None

        with self.get_session() as session:
            record = session.query(TaskRecord).filter(TaskRecord.id == str(key)).first()
            return record.to_domain() if record else None

    def update(self, task: Task) -> Task:
        """Write every field of ``task`` over its row and refresh ``updated_at``.

        Raises:
            TaskNotFoundError: If the row no longer exists
        """
        key = parse_task_id(task.id)

        with self.get_session() as session:
            record = None
            if key is not None:
                record = session.query(TaskRecord).filter(TaskRecord.id == str(key)).first()
            if record is None:
                raise TaskNotFoundError(str(task.id))

            record.title = task.title
            record.normalized_title = normalize_title(task.title or "")
            record.description = task.description
            record.status = task.status
            record.updated_at = datetime.now()
            session.flush()
            stored = record.to_domain()

        logger.debug(f"Updated task row {stored.id}")
        return stored

    def delete_by_id(self, task_id: str) -> None:
        key = parse_task_id(task_id)
        if key is None:
            return

        with self.get_session() as session:
            session.query(TaskRecord).filter(TaskRecord.id == str(key)).delete()

    def find_by_title_ignore_case(self, title: str) -> Optional[Task]:
        with self.get_session() as session:
            record = (
                session.query(TaskRecord)
                .filter(TaskRecord.normalized_title == normalize_title(title))
                .first()
            )
            return record.to_domain() if record else None

    def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Task store ping failed: {e}")
            return False

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
