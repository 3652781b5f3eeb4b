"""Tests for the task model, the task use case and the store adapters."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from tasklist.models.outcome import OutcomeKind, TaskOutcome
from tasklist.models.task import DEFAULT_STATUS, Task, normalize_title
from tasklist.services import task_service
from tasklist.services.task_service import (
    TaskUseCase,
    initialize_task_use_case,
    reset_task_use_case,
)
from tasklist.stores.base import TaskNotFoundError, parse_task_id
from tasklist.stores import sqlalchemy_store


class TestTaskModel:
    """Test Task domain model."""

    def test_task_creation_minimal(self):
        """Unsaved tasks carry no id, status or timestamps."""
        task = Task(title="Minimal Task")

        assert task.title == "Minimal Task"
        assert task.description is None
        assert task.status is None
        assert task.id is None
        assert task.created_at is None

    def test_apply_default_status(self):
        task = Task(title="Test Task")
        task.apply_default_status()
        assert task.status == DEFAULT_STATUS

        task = Task(title="Test Task", status="")
        task.apply_default_status("todo")
        assert task.status == "todo"

        task = Task(title="Test Task", status="   ")
        task.apply_default_status()
        assert task.status == DEFAULT_STATUS

    def test_apply_default_status_keeps_given_status(self):
        task = Task(title="Test Task", status="done")
        task.apply_default_status()
        assert task.status == "done"

    def test_normalize_title(self):
        assert normalize_title("  Buy MILK ") == "buy milk"
        assert Task(title="\tBuy milk\n").normalized_title == "buy milk"

    def test_parse_task_id(self):
        task_id = uuid4()

        assert parse_task_id(str(task_id)) == task_id
        assert parse_task_id(task_id) == task_id
        assert parse_task_id("not-a-uuid") is None
        assert parse_task_id(None) is None
        assert parse_task_id("") is None


class TestTaskOutcome:
    """Test outcome values returned by the use case."""

    def test_success(self, sample_task):
        outcome = TaskOutcome.success(sample_task)

        assert outcome.ok
        assert outcome.kind is OutcomeKind.SUCCESS
        assert outcome.task is sample_task

    def test_not_found(self):
        outcome = TaskOutcome.not_found("abc")

        assert not outcome.ok
        assert outcome.kind is OutcomeKind.NOT_FOUND
        assert outcome.task is None
        assert "abc" in outcome.message

    def test_conflict(self):
        outcome = TaskOutcome.conflict("duplicate")

        assert not outcome.ok
        assert outcome.kind is OutcomeKind.CONFLICT
        assert outcome.message == "duplicate"


class TestTaskUseCaseCreate:
    """Test TaskUseCase.create."""

    def test_create_task_success(self, use_case):
        outcome = use_case.create(Task(title="Test Task", description="Test description"))

        assert outcome.ok
        task = outcome.task
        assert task.id is not None
        assert task.title == "Test Task"
        assert task.description == "Test description"
        assert task.status == "pending"
        assert task.created_at is not None
        assert task.created_at == task.updated_at

    def test_create_task_keeps_given_status(self, use_case):
        outcome = use_case.create(Task(title="Test Task", status="in_progress"))

        assert outcome.task.status == "in_progress"

    @pytest.mark.parametrize("status", ["", "   ", "\t\n"])
    def test_create_task_blank_status_gets_default(self, use_case, status):
        outcome = use_case.create(Task(title="Test Task", status=status))

        assert outcome.task.status == "pending"

    def test_create_task_uses_configured_default_status(self, memory_store):
        use_case = TaskUseCase(memory_store, default_status="todo")

        outcome = use_case.create(Task(title="Test Task"))

        assert outcome.task.status == "todo"

    def test_create_task_trims_title(self, use_case):
        outcome = use_case.create(Task(title="  Padded title  "))

        assert outcome.task.title == "Padded title"

    def test_create_does_not_mutate_input(self, use_case):
        task = Task(title=" Test Task ")

        use_case.create(task)

        assert task.title == " Test Task "
        assert task.status is None
        assert task.id is None

    @pytest.mark.parametrize("variant", ["Buy milk", "buy MILK ", "  BUY MILK", "bUy MiLk\t"])
    def test_create_duplicate_title_variants(self, use_case, variant):
        assert use_case.create(Task(title="Buy milk")).ok

        outcome = use_case.create(Task(title=variant))

        assert outcome.kind is OutcomeKind.CONFLICT
        assert "already exists" in outcome.message
        assert len(use_case.find_all()) == 1

    def test_create_similar_but_different_titles(self, use_case):
        assert use_case.create(Task(title="Buy milk")).ok
        assert use_case.create(Task(title="Buy milk and eggs")).ok
        assert use_case.create(Task(title="Buymilk")).ok

        assert len(use_case.find_all()) == 3


class TestTaskUseCaseQueries:
    """Test TaskUseCase.find_all and find_by_id."""

    def test_find_all_empty(self, use_case):
        assert use_case.find_all() == []

    def test_find_all_in_store_order(self, use_case):
        for title in ("Task 1", "Task 2", "Task 3"):
            use_case.create(Task(title=title))

        tasks = use_case.find_all()

        assert [task.title for task in tasks] == ["Task 1", "Task 2", "Task 3"]

    def test_find_by_id_success(self, use_case):
        created = use_case.create(Task(title="Test Task")).task

        found = use_case.find_by_id(created.id)

        assert found is not None
        assert found.id == created.id
        assert found.title == "Test Task"

    def test_find_by_id_not_found(self, use_case):
        assert use_case.find_by_id(str(uuid4())) is None

    def test_find_by_id_malformed(self, use_case):
        assert use_case.find_by_id("not-a-uuid") is None


class TestTaskUseCaseUpdate:
    """Test TaskUseCase.update merge rules."""

    def test_update_task_success(self, use_case):
        created = use_case.create(Task(title="Original Task")).task

        outcome = use_case.update(created.id, Task(title="Updated Task", description="Updated description"))

        assert outcome.ok
        assert outcome.task.id == created.id
        assert outcome.task.title == "Updated Task"
        assert outcome.task.description == "Updated description"
        assert outcome.task.created_at == created.created_at
        assert outcome.task.updated_at >= created.updated_at

    def test_update_status_only_preserves_other_fields(self, use_case):
        created = use_case.create(Task(title="Buy milk", description="2 liters")).task

        outcome = use_case.update(created.id, Task(status="done"))

        assert outcome.task.status == "done"
        assert outcome.task.title == "Buy milk"
        assert outcome.task.description == "2 liters"

    def test_update_empty_title_is_ignored(self, use_case):
        created = use_case.create(Task(title="Original Task")).task

        outcome = use_case.update(created.id, Task(title=""))

        assert outcome.ok
        assert outcome.task.title == "Original Task"

    @pytest.mark.parametrize("status", ["", "  ", "\t"])
    def test_update_blank_status_is_ignored(self, use_case, status):
        created = use_case.create(Task(title="Original Task", status="doing")).task

        outcome = use_case.update(created.id, Task(status=status))

        assert outcome.ok
        assert outcome.task.status == "doing"
        assert use_case.find_by_id(created.id).status == "doing"

    def test_update_empty_description_clears(self, use_case):
        created = use_case.create(Task(title="Original Task", description="Some text")).task

        outcome = use_case.update(created.id, Task(description=""))

        assert outcome.task.description == ""

    def test_update_absent_description_preserved(self, use_case):
        created = use_case.create(Task(title="Original Task", description="Some text")).task

        outcome = use_case.update(created.id, Task(title="Renamed"))

        assert outcome.task.description == "Some text"

    def test_update_not_found(self, use_case):
        outcome = use_case.update(str(uuid4()), Task(title="Updated Task"))

        assert outcome.kind is OutcomeKind.NOT_FOUND
        assert outcome.task is None

    def test_update_malformed_id_not_found(self, use_case):
        outcome = use_case.update("not-a-uuid", Task(status="done"))

        assert outcome.kind is OutcomeKind.NOT_FOUND

    def test_update_to_other_tasks_title_conflicts(self, use_case):
        use_case.create(Task(title="Buy milk"))
        other = use_case.create(Task(title="Walk the dog")).task

        outcome = use_case.update(other.id, Task(title=" BUY milk"))

        assert outcome.kind is OutcomeKind.CONFLICT
        assert use_case.find_by_id(other.id).title == "Walk the dog"

    def test_update_to_own_title_succeeds(self, use_case):
        created = use_case.create(Task(title="Buy milk")).task

        outcome = use_case.update(created.id, Task(title="BUY MILK "))

        assert outcome.ok
        assert outcome.task.title == "BUY MILK"

    def test_update_conflict_writes_nothing(self, memory_store):
        store = MagicMock(wraps=memory_store)
        use_case = TaskUseCase(store)
        use_case.create(Task(title="Buy milk"))
        other = use_case.create(Task(title="Walk the dog")).task

        use_case.update(other.id, Task(title="buy milk", status="done"))

        store.update.assert_not_called()


class TestTaskUseCaseDelete:
    """Test TaskUseCase.delete."""

    def test_delete_task_success(self, use_case):
        created = use_case.create(Task(title="Test Task")).task

        assert use_case.delete(created.id) is True
        assert use_case.find_by_id(created.id) is None

    def test_delete_twice(self, use_case):
        created = use_case.create(Task(title="Test Task")).task

        assert use_case.delete(created.id) is True
        assert use_case.delete(created.id) is False

    def test_delete_not_found(self, use_case):
        assert use_case.delete(str(uuid4())) is False

    def test_delete_frees_title(self, use_case):
        created = use_case.create(Task(title="Buy milk")).task
        use_case.delete(created.id)

        assert use_case.create(Task(title="buy milk")).ok

    def test_delete_checks_existence_first(self):
        store = MagicMock()
        store.find_by_id.return_value = None
        use_case = TaskUseCase(store)

        assert use_case.delete("missing") is False
        store.delete_by_id.assert_not_called()


class TestTaskUseCaseGlobal:
    """Test the module-level use case used by the API."""

    def test_initialize_task_use_case(self, memory_store):
        use_case = initialize_task_use_case(memory_store, default_status="todo")

        assert task_service.get_task_use_case() is use_case
        assert use_case.create(Task(title="Test Task")).task.status == "todo"

    def test_reset_task_use_case(self, memory_store):
        initialize_task_use_case(memory_store)

        reset_task_use_case()

        assert task_service.get_task_use_case() is None


class TestTaskStores:
    """Behaviour shared by every TaskOutputGateway implementation."""

    def test_save_assigns_id_and_timestamps(self, any_store):
        stored = any_store.save(Task(title="Test Task", status="pending"))

        assert parse_task_id(stored.id) is not None
        assert stored.created_at is not None
        assert stored.updated_at == stored.created_at

    def test_save_assigns_distinct_ids(self, any_store):
        first = any_store.save(Task(title="Task 1", status="pending"))
        second = any_store.save(Task(title="Task 2", status="pending"))

        assert first.id != second.id

    def test_find_by_id_round_trip(self, any_store):
        stored = any_store.save(Task(title="Test Task", description="Desc", status="pending"))

        found = any_store.find_by_id(stored.id)

        assert found == stored

    @pytest.mark.parametrize("bad_id", ["not-a-uuid", "", "123"])
    def test_malformed_ids_are_not_found(self, any_store, bad_id):
        any_store.save(Task(title="Test Task", status="pending"))

        assert any_store.find_by_id(bad_id) is None
        any_store.delete_by_id(bad_id)
        assert len(any_store.find_all()) == 1

    def test_find_by_title_ignore_case(self, any_store):
        stored = any_store.save(Task(title="Buy milk", status="pending"))

        assert any_store.find_by_title_ignore_case("  BUY MILK ").id == stored.id
        assert any_store.find_by_title_ignore_case("buy") is None

    def test_update_refreshes_updated_at_only(self, any_store):
        stored = any_store.save(Task(title="Test Task", status="pending"))

        updated = any_store.update(stored.model_copy(update={"status": "done"}))

        assert updated.status == "done"
        assert updated.created_at == stored.created_at
        assert updated.updated_at >= stored.updated_at
        assert any_store.find_by_id(stored.id).status == "done"

    def test_update_keeps_title_lookup_in_sync(self, any_store):
        stored = any_store.save(Task(title="Old title", status="pending"))

        any_store.update(stored.model_copy(update={"title": "New title"}))

        assert any_store.find_by_title_ignore_case("old title") is None
        assert any_store.find_by_title_ignore_case("NEW TITLE").id == stored.id

    def test_update_missing_task_raises(self, any_store):
        with pytest.raises(TaskNotFoundError):
            any_store.update(Task(id=str(uuid4()), title="Ghost", status="pending"))

    def test_delete_by_id(self, any_store):
        stored = any_store.save(Task(title="Test Task", status="pending"))

        any_store.delete_by_id(stored.id)

        assert any_store.find_by_id(stored.id) is None
        assert any_store.find_all() == []

    def test_find_all_in_insertion_order(self, any_store):
        for title in ("Task 1", "Task 2", "Task 3"):
            any_store.save(Task(title=title, status="pending"))

        assert [task.title for task in any_store.find_all()] == ["Task 1", "Task 2", "Task 3"]

    def test_returned_tasks_are_copies(self, any_store):
        stored = any_store.save(Task(title="Test Task", status="pending"))

        stored.title = "Changed locally"

        assert any_store.find_by_id(stored.id).title == "Test Task"

    def test_ping(self, any_store):
        assert any_store.ping() is True


class TestSqlAlchemyTaskStore:
    """Store-level guarantees of the relational adapter."""

    def test_unique_normalized_title_constraint(self, sql_store):
        sql_store.save(Task(title="Buy milk", status="pending"))

        with pytest.raises(IntegrityError):
            sql_store.save(Task(title=" BUY MILK", status="pending"))

        assert len(sql_store.find_all()) == 1

    def test_constraint_catches_use_case_race(self, sql_store):
        """Both creates pass the lookup; the database rejects the second."""
        racing_store = MagicMock(wraps=sql_store)
        racing_store.find_by_title_ignore_case.return_value = None
        use_case = TaskUseCase(racing_store)

        assert use_case.create(Task(title="Buy milk")).ok
        with pytest.raises(IntegrityError):
            use_case.create(Task(title="buy milk"))

    def test_find_all_orders_equal_timestamps_by_insertion(self, sql_store, monkeypatch):
        fixed = datetime(2024, 1, 1, 12, 0, 0)
        monkeypatch.setattr(sqlalchemy_store, "datetime", MagicMock(now=MagicMock(return_value=fixed)))
        titles = [f"Task {i}" for i in range(10)]
        for title in titles:
            sql_store.save(Task(title=title, status="pending"))

        tasks = sql_store.find_all()

        assert {task.created_at for task in tasks} == {fixed}
        assert [task.title for task in tasks] == titles

    def test_file_database_persists(self, tmp_path):
        from tasklist.stores.sqlalchemy_store import SqlAlchemyTaskStore

        url = f"sqlite:///{tmp_path / 'nested' / 'tasks.db'}"
        store = SqlAlchemyTaskStore(url)
        stored = store.save(Task(title="Persisted", status="pending"))
        store.dispose()

        reopened = SqlAlchemyTaskStore(url)
        try:
            assert reopened.find_by_id(stored.id).title == "Persisted"
        finally:
            reopened.dispose()


class TestInMemoryTaskStoreThreadSafety:
    """Test concurrent access to the in-memory store."""

    def test_concurrent_saves(self, memory_store):
        def save(i):
            return memory_store.save(Task(title=f"Task {i}", status="pending"))

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(save, range(50)))

        assert len({task.id for task in results}) == 50
        assert len(memory_store.find_all()) == 50

    def test_clear(self, memory_store):
        memory_store.save(Task(title="Task 1", status="pending"))
        memory_store.save(Task(title="Task 2", status="pending"))

        assert memory_store.clear() == 2
        assert memory_store.find_all() == []
