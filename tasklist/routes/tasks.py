"""Task management CRUD routes."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..deps import get_task_use_case
from ..errors import raise_for_outcome
from ..models.outcome import TaskOutcome
from ..ports import TaskInputGateway
from ..schemas import TaskCreate, TaskResponse, TaskUpdate
from ..validation import ensure_valid, validate_task_create, validate_task_update

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_task(
    task_data: TaskCreate,
    use_case: TaskInputGateway = Depends(get_task_use_case)
) -> TaskResponse:
    """Create a new task.

    Args:
        task_data: Task creation data
        use_case: Task use case

    Returns:
        Created task response
    """
    ensure_valid("taskCreate", validate_task_create(task_data))
    logger.info(f"Creating new task: {task_data.title}")

    outcome = use_case.create(task_data.to_domain())
    raise_for_outcome(outcome)

    return TaskResponse.from_task(outcome.task)


@router.get("", response_model=List[TaskResponse])
@router.get("/", response_model=List[TaskResponse], include_in_schema=False)
def list_tasks(
    use_case: TaskInputGateway = Depends(get_task_use_case)
) -> List[TaskResponse]:
    """List every task in store order."""
    tasks = use_case.find_all()
    return [TaskResponse.from_task(task) for task in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    use_case: TaskInputGateway = Depends(get_task_use_case)
) -> TaskResponse:
    """Get a specific task by ID.

    Args:
        task_id: Task ID
        use_case: Task use case

    Returns:
        Task response
    """
    logger.debug(f"Getting task: {task_id}")

    task = use_case.find_by_id(task_id)
    if task is None:
        raise_for_outcome(TaskOutcome.not_found(task_id))

    return TaskResponse.from_task(task)


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    task_data: TaskUpdate,
    use_case: TaskInputGateway = Depends(get_task_use_case)
) -> TaskResponse:
    """Update the fields present in the request body.

    Args:
        task_id: Task ID
        task_data: Task update data
        use_case: Task use case

    Returns:
        Updated task response
    """
    ensure_valid("taskUpdate", validate_task_update(task_data))
    logger.info(f"Updating task: {task_id}")

    outcome = use_case.update(task_id, task_data.to_domain())
    raise_for_outcome(outcome)

    return TaskResponse.from_task(outcome.task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    use_case: TaskInputGateway = Depends(get_task_use_case)
) -> Response:
    """Delete a task.

    Args:
        task_id: Task ID
        use_case: Task use case
    """
    logger.info(f"Deleting task: {task_id}")

    if not use_case.delete(task_id):
        raise_for_outcome(TaskOutcome.not_found(task_id))

    return Response(status_code=status.HTTP_204_NO_CONTENT)
