"""Dependency injection helpers for FastAPI."""

from functools import lru_cache

from fastapi import Request

from .config import Settings
from .ports import TaskInputGateway, TaskOutputGateway
from .services import task_service
from .stores.base import StoreUnavailableError
from .stores.memory import InMemoryTaskStore
from .stores.sqlalchemy_store import SqlAlchemyTaskStore


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()


def build_task_store(settings: Settings) -> TaskOutputGateway:
    """Create the task store selected by ``settings.database_url``."""
    if settings.uses_memory_store:
        return InMemoryTaskStore()
    return SqlAlchemyTaskStore(settings.database_url, echo=settings.database_echo)


def get_task_use_case(request: Request) -> TaskInputGateway:
    """Get the task use case of the app serving ``request``.

    Falls back to the global instance when the app has none of its own.

    Raises:
        StoreUnavailableError: If the application has not finished starting
    """
    use_case = getattr(request.app.state, "task_use_case", None)
    if use_case is None:
        use_case = task_service.get_task_use_case()
    if use_case is None:
        raise StoreUnavailableError("Task store is not initialized")
    return use_case
