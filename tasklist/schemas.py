"""API request/response schemas for the task list."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .models.task import Task


# Task-related schemas
class TaskCreate(BaseModel):
    """Schema for creating a new task.

    Field rules (required, non-blank, length) are checked by
    ``validation.validate_task_create`` so they can be reported together.
    """
    title: Optional[str] = Field(None, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: Optional[str] = Field(None, description="Task status, 'pending' when omitted")

    def to_domain(self) -> Task:
        return Task(title=self.title, description=self.description, status=self.status)


class TaskUpdate(BaseModel):
    """Schema for updating an existing task. Omitted fields are left unchanged."""
    title: Optional[str] = Field(None, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: Optional[str] = Field(None, description="Task status")

    def to_domain(self) -> Task:
        return Task(title=self.title, description=self.description, status=self.status)


class TaskResponse(BaseModel):
    """Schema for task API responses."""
    id: str = Field(..., description="Unique task identifier")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: str = Field(..., description="Task status")
    created_at: datetime = Field(..., alias="createdAt", description="Task creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        from_attributes = True
        populate_by_name = True

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


# Error envelope schemas
class ApiSubError(BaseModel):
    """Per-field validation failure."""
    object: str = Field(..., description="Name of the validated object")
    field: str = Field(..., description="Offending field")
    rejected_value: Any = Field(None, alias="rejectedValue", description="Value that was rejected")
    message: str = Field(..., description="Why the value was rejected")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True


class ApiError(BaseModel):
    """Error body returned for every failed request."""
    status: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Human readable error message")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the error occurred")
    debug_message: Optional[str] = Field(None, alias="debugMessage", description="Diagnostic detail")
    sub_errors: Optional[List[ApiSubError]] = Field(None, alias="subErrors", description="Field validation failures")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    def to_content(self) -> dict:
        content = self.model_dump(mode="json", by_alias=True)
        if self.sub_errors is None:
            content.pop("subErrors")
        return content


# Health check schema
class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(default_factory=datetime.now, description="Health check timestamp")
    version: str = Field(..., description="Application version")
    store: str = Field(..., description="Task store status")
