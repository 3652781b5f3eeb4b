"""Helpers shared by the task store adapters."""

from typing import Optional
from uuid import UUID


class TaskNotFoundError(LookupError):
    """Raised when a store is asked to update a task that no longer exists."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class StoreUnavailableError(RuntimeError):
    """Raised when the backing store cannot be reached."""


def parse_task_id(task_id) -> Optional[UUID]:
    """Parse a task id, returning None when it is not a well-formed UUID."""
    if isinstance(task_id, UUID):
        return task_id
    try:
        return UUID(str(task_id))
    except (TypeError, ValueError, AttributeError):
        return None
