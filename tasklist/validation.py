"""Field validation for task requests."""

from dataclasses import dataclass
from typing import Any, List, Optional

from .models.task import TITLE_MAX_LENGTH
from .schemas import TaskCreate, TaskUpdate


@dataclass(frozen=True)
class FieldViolation:
    field: str
    rejected_value: Any
    message: str


class TaskValidationError(Exception):
    """Raised by the API layer when a request body fails field validation."""

    def __init__(self, object_name: str, violations: List[FieldViolation]):
        super().__init__(f"{len(violations)} invalid field(s) in {object_name}")
        self.object_name = object_name
        self.violations = violations


def _check_title(title: Optional[str], required: bool) -> List[FieldViolation]:
    if title is None or title == "":
        if required:
            return [FieldViolation("title", title, "Task title is required")]
        return []

    violations = []
    if not title.strip():
        violations.append(FieldViolation("title", title, "Task title must not be blank"))
    if len(title) > TITLE_MAX_LENGTH:
        violations.append(FieldViolation(
            "title", title, f"Task title must be at most {TITLE_MAX_LENGTH} characters"
        ))
    return violations


def validate_task_create(request: TaskCreate) -> List[FieldViolation]:
    """Check a create request; an empty list means it is valid."""
    return _check_title(request.title, required=True)


def validate_task_update(request: TaskUpdate) -> List[FieldViolation]:
    """Check an update request.

    ``title`` may be omitted or empty, both of which leave the stored title
    unchanged; any other value must satisfy the create rules.
    """
    return _check_title(request.title, required=False)


def ensure_valid(object_name: str, violations: List[FieldViolation]) -> None:
    """Raise TaskValidationError when ``violations`` is not empty."""
    if violations:
        raise TaskValidationError(object_name, violations)
