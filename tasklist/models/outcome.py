"""Result values returned by the task use case."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .task import Task


class OutcomeKind(str, Enum):
    """How a use-case operation ended."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class TaskOutcome:
    """Outcome of a create or update call.

    ``task`` is set only for ``SUCCESS``; ``message`` explains the other kinds.
    """

    kind: OutcomeKind
    task: Optional[Task] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(cls, task: Task) -> "TaskOutcome":
        return cls(OutcomeKind.SUCCESS, task=task)

    @classmethod
    def not_found(cls, task_id: str) -> "TaskOutcome":
        return cls(OutcomeKind.NOT_FOUND, message=f"Task {task_id} not found")

    @classmethod
    def conflict(cls, message: str) -> "TaskOutcome":
        return cls(OutcomeKind.CONFLICT, message=message)
