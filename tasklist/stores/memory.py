"""In-memory task store for development and tests."""

import logging
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from ..models.task import Task, normalize_title
from .base import TaskNotFoundError, parse_task_id

logger = logging.getLogger(__name__)


class InMemoryTaskStore:
    """Task store backed by a dict, kept in insertion order."""

    def __init__(self):
        """Initialize the store."""
        self._tasks: Dict[UUID, Task] = {}
        self._lock = Lock()  # Thread-safe operations
        logger.info("Task store initialized with in-memory storage")

    def save(self, task: Task) -> Task:
        """Insert a new task, assigning its id and timestamps."""
        now = datetime.now()
        stored = task.model_copy(update={
            "id": str(uuid4()),
            "created_at": now,
            "updated_at": now,
        })

        with self._lock:
            self._tasks[UUID(stored.id)] = stored

        logger.debug(f"Stored task {stored.id}")
        return stored.model_copy()

    def find_all(self) -> List[Task]:
        with self._lock:
            return [task.model_copy() for task in self._tasks.values()]

    def find_by_id(self, task_id: str) -> Optional[Task]:
        key = parse_task_id(task_id)
        if key is None:
            logger.debug(f"Ignoring malformed task id: {task_id!r}")
            return None

        with self._lock:
            task = self._tasks.get(key)
            return task.model_copy() if task else None

    def update(self, task: Task) -> Task:
        """Replace a stored task, keeping ``created_at`` and refreshing ``updated_at``.

        Raises:
            TaskNotFoundError: If the task is no longer stored
        """
        key = parse_task_id(task.id)

        with self._lock:
            current = self._tasks.get(key) if key else None
            if current is None:
                raise TaskNotFoundError(str(task.id))

            stored = task.model_copy(update={
                "id": current.id,
                "created_at": current.created_at,
                "updated_at": datetime.now(),
            })
            self._tasks[key] = stored

        logger.debug(f"Replaced task {stored.id}")
        return stored.model_copy()

    def delete_by_id(self, task_id: str) -> None:
        key = parse_task_id(task_id)
        if key is None:
            return

        with self._lock:
            self._tasks.pop(key, None)

    def find_by_title_ignore_case(self, title: str) -> Optional[Task]:
        wanted = normalize_title(title)

        with self._lock:
            for task in self._tasks.values():
                if task.normalized_title == wanted:
                    return task.model_copy()
        return None

    def ping(self) -> bool:
        """In-memory storage is always reachable."""
        return True

    def clear(self) -> int:
        """Remove every task (for testing/development).

        Returns:
            Number of tasks that were cleared
        """
        with self._lock:
            count = len(self._tasks)
            self._tasks.clear()
        logger.warning(f"Cleared all {count} tasks")
        return count
