"""Task use case holding the business rules of the task list."""

import logging
from typing import List, Optional

from ..models.outcome import TaskOutcome
from ..models.task import DEFAULT_STATUS, Task
from ..ports import TaskOutputGateway

logger = logging.getLogger(__name__)


class TaskUseCase:
    """Task operations on top of a TaskOutputGateway.

    Title uniqueness is checked with a lookup before each write. The check
    and the write are not atomic; stores that need a hard guarantee enforce
    it themselves (see ``SqlAlchemyTaskStore``).
    """

    def __init__(self, store: TaskOutputGateway, default_status: str = DEFAULT_STATUS):
        """Initialize the use case.

        Args:
            store: Output gateway used for persistence
            default_status: Status assigned on create when none is given
        """
        self._store = store
        self._default_status = default_status
        logger.info(f"Task use case initialized with {type(store).__name__}")

    def create(self, task: Task) -> TaskOutcome:
        """Create a new task.

        Args:
            task: Task to create; ``id`` and timestamps are ignored

        Returns:
            SUCCESS with the stored task, or CONFLICT on a duplicate title
        """
        task = task.model_copy()
        task.apply_default_status(self._default_status)

        if task.title and task.title.strip():
            task.title = task.title.strip()
            existing = self._store.find_by_title_ignore_case(task.title)
            if existing is not None:
                logger.warning(f"Rejected duplicate title on create: '{task.title}'")
                return TaskOutcome.conflict(
                    f"A task with the title '{task.title}' already exists (case-insensitive)"
                )

        created = self._store.save(task)
        logger.info(f"Created task {created.id}: {created.title}")
        return TaskOutcome.success(created)

    def find_all(self) -> List[Task]:
        """List every task in store order."""
        tasks = self._store.find_all()
        logger.debug(f"Listed {len(tasks)} tasks")
        return tasks

    def find_by_id(self, task_id: str) -> Optional[Task]:
        """Get a task by ID.

        Returns:
            Task if found, None otherwise
        """
        task = self._store.find_by_id(task_id)
        if task is None:
            logger.debug(f"Task {task_id} not found")
        return task

    def update(self, task_id: str, task: Task) -> TaskOutcome:
        """Merge the fields present in ``task`` into an existing task.

        Args:
            task_id: Task ID
            task: Partial task; None fields are left untouched

        Returns:
            SUCCESS with the merged task, NOT_FOUND, or CONFLICT on a
            title already used by another task
        """
        current = self._store.find_by_id(task_id)
        if current is None:
            logger.warning(f"Task {task_id} not found for update")
            return TaskOutcome.not_found(task_id)

        merged = current.model_copy()

        title = task.title.strip() if task.title else ""
        if title:
            same_title = self._store.find_by_title_ignore_case(title)
            if same_title is not None and same_title.id != current.id:
                logger.warning(f"Rejected duplicate title on update of {task_id}: '{title}'")
                return TaskOutcome.conflict(
                    f"Another task with the title '{title}' already exists (case-insensitive)"
                )
            merged.title = title

        # Empty description is an explicit clear
        if task.description is not None:
            merged.description = task.description

        if task.status and task.status.strip():
            merged.status = task.status

        updated = self._store.update(merged)
        logger.info(f"Updated task {task_id}: {updated.title}")
        return TaskOutcome.success(updated)

    def delete(self, task_id: str) -> bool:
        """Delete a task.

        Returns:
            True if task was deleted, False if not found
        """
        if self._store.find_by_id(task_id) is None:
            logger.warning(f"Task {task_id} not found for deletion")
            return False

        self._store.delete_by_id(task_id)
        logger.info(f"Deleted task {task_id}")
        return True


# Global task use case instance - initialized during app startup
_task_use_case: Optional[TaskUseCase] = None


def get_task_use_case() -> Optional[TaskUseCase]:
    """Get the global task use case instance.

    Returns:
        Task use case or None if not initialized
    """
    return _task_use_case


def initialize_task_use_case(
    store: TaskOutputGateway, default_status: str = DEFAULT_STATUS
) -> TaskUseCase:
    """Initialize the global task use case instance.

    Returns:
        Initialized task use case
    """
    global _task_use_case
    _task_use_case = TaskUseCase(store, default_status=default_status)
    return _task_use_case


def reset_task_use_case() -> None:
    """Drop the global task use case instance."""
    global _task_use_case
    _task_use_case = None
