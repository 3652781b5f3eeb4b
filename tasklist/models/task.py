"""Domain models for the task list system."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_STATUS = "pending"
TITLE_MAX_LENGTH = 255


def normalize_title(title: str) -> str:
    """Return the comparison key used by the unique-title rule."""
    return title.strip().lower()


class Task(BaseModel):
    """Task domain model.

    ``id`` and the timestamps are assigned by the store; a task that has not
    been persisted yet carries ``None`` for them.
    """

    id: Optional[str] = Field(None, description="Unique task identifier")
    title: Optional[str] = Field(None, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: Optional[str] = Field(None, description="Free-form task status")
    created_at: Optional[datetime] = Field(None, description="Task creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        validate_assignment = True

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title or "")

    def apply_default_status(self, default: str = DEFAULT_STATUS) -> None:
        """Assign the default status when none or a blank one was supplied."""
        if not (self.status and self.status.strip()):
            self.status = default
