"""Shared test fixtures and configuration for the test suite."""

from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Add the parent directory to the path for imports
import sys

sys.path.append(str(Path(__file__).parent.parent))

from tasklist.config import Settings
from tasklist.main import create_app
from tasklist.models.task import Task
from tasklist.services.task_service import TaskUseCase
from tasklist.stores.memory import InMemoryTaskStore
from tasklist.stores.sqlalchemy_store import SqlAlchemyTaskStore


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings using the in-memory store and no log files."""
    return Settings(
        database_url="memory",
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        log_to_file=False,
        environment="test",
    )


@pytest.fixture
def memory_store() -> InMemoryTaskStore:
    """Create an empty in-memory task store."""
    return InMemoryTaskStore()


@pytest.fixture
def sql_store() -> Generator[SqlAlchemyTaskStore, None, None]:
    """Create a task store on a private in-memory SQLite database."""
    store = SqlAlchemyTaskStore("sqlite://")
    yield store
    store.dispose()


@pytest.fixture(params=["memory", "sqlalchemy"])
def any_store(request):
    """Run a test once per store adapter."""
    if request.param == "memory":
        yield InMemoryTaskStore()
    else:
        store = SqlAlchemyTaskStore("sqlite://")
        yield store
        store.dispose()


@pytest.fixture
def use_case(memory_store) -> TaskUseCase:
    """Create a task use case over the in-memory store."""
    return TaskUseCase(memory_store)


@pytest.fixture
def sample_task() -> Task:
    """Create a sample unsaved task for testing."""
    return Task(title="Test Task", description="This is a test task")


@pytest.fixture
def client(test_settings, memory_store) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app backed by the in-memory store."""
    app = create_app(test_settings, store=memory_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sql_client(test_settings, sql_store) -> Generator[TestClient, None, None]:
    """Create a test client backed by the SQLAlchemy store."""
    app = create_app(test_settings, store=sql_store)
    with TestClient(app) as test_client:
        yield test_client


# Test data fixtures
@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {"title": "Test Task", "description": "This is a test task description"}
