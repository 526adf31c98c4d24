"""Unit tests for todos/store.py -- owner-scoped task repository.

Covers:
- create() stamps owner, defaults completed=False, sets both timestamps
- list_all() is newest-first and empty for a user with no tasks
- update() applies only supplied fields and refreshes updated_at
- update() rejects an empty patch before any storage call
- Cross-owner isolation: get/update/delete on another user's task raise the
  same NotFoundError as a missing id, and leave the task untouched
- delete() then get() -> NotFoundError; second delete -> NotFoundError
- Title validation: blank and over-long titles rejected
- Ids outside the id column range are not found without reaching the driver
"""

from unittest.mock import MagicMock

import pytest

import todos.store
from core.errors import InvalidPatchError, NotFoundError, ValidationError
from todos.models import TaskPatch
from todos.store import TITLE_MAX_LENGTH, TODO_ID_MAX, TodoStore


@pytest.fixture
def alice(make_principal):
    return make_principal("alice@example.com")


@pytest.fixture
def bob(make_principal):
    return make_principal("bob@example.com")


# ---------------------------------------------------------------------------
# Create and read
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_sets_owner_and_defaults(self, todo_store: TodoStore, alice) -> None:
        task = todo_store.create(alice, "buy milk")
        assert task.id is not None
        assert task.owner_id == alice.user_id
        assert task.completed is False
        assert task.created_at and task.created_at == task.updated_at

    def test_create_completed(self, todo_store: TodoStore, alice) -> None:
        assert todo_store.create(alice, "already done", completed=True).completed is True

    def test_get_returns_created_task(self, todo_store: TodoStore, alice) -> None:
        created = todo_store.create(alice, "buy milk")
        assert todo_store.get(alice, created.id) == created

    @pytest.mark.parametrize("title", ["", "   ", "x" * (TITLE_MAX_LENGTH + 1)])
    def test_invalid_title_rejected(self, todo_store: TodoStore, alice, title: str) -> None:
        with pytest.raises(ValidationError):
            todo_store.create(alice, title)


class TestList:
    def test_empty_for_new_user(self, todo_store: TodoStore, alice) -> None:
        assert todo_store.list_all(alice) == []

    def test_newest_first(self, todo_store: TodoStore, alice) -> None:
        for title in ("first", "second", "third"):
            todo_store.create(alice, title)
        titles = [t.title for t in todo_store.list_all(alice)]
        assert titles == ["third", "second", "first"], f"Expected newest first, got {titles}"

    def test_only_own_tasks(self, todo_store: TodoStore, alice, bob) -> None:
        todo_store.create(alice, "alice task")
        todo_store.create(bob, "bob task")
        assert [t.title for t in todo_store.list_all(alice)] == ["alice task"]
        assert [t.title for t in todo_store.list_all(bob)] == ["bob task"]


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_completed_only_keeps_title(self, todo_store: TodoStore, alice) -> None:
        task = todo_store.create(alice, "buy milk")
        updated = todo_store.update(alice, task.id, TaskPatch(completed=True))
        assert updated.completed is True
        assert updated.title == "buy milk"

    def test_title_only_keeps_completed(self, todo_store: TodoStore, alice) -> None:
        task = todo_store.create(alice, "buy milk", completed=True)
        updated = todo_store.update(alice, task.id, TaskPatch(title="buy oat milk"))
        assert updated.title == "buy oat milk"
        assert updated.completed is True

    def test_refreshes_updated_at_only(self, todo_store: TodoStore, alice, monkeypatch) -> None:
        task = todo_store.create(alice, "buy milk")
        later = "2030-01-01T00:00:00.000000+00:00"
        monkeypatch.setattr(todos.store, "now_iso", lambda: later)
        updated = todo_store.update(alice, task.id, TaskPatch(completed=True))
        assert updated.updated_at == later
        assert updated.created_at == task.created_at

    def test_empty_patch_rejected_before_storage(self, todo_store: TodoStore, alice) -> None:
        task = todo_store.create(alice, "buy milk")
        todo_store.engine = MagicMock()
        with pytest.raises(InvalidPatchError):
            todo_store.update(alice, task.id, TaskPatch())
        todo_store.engine.begin.assert_not_called()
        todo_store.engine.connect.assert_not_called()

    def test_blank_title_rejected(self, todo_store: TodoStore, alice) -> None:
        task = todo_store.create(alice, "buy milk")
        with pytest.raises(ValidationError):
            todo_store.update(alice, task.id, TaskPatch(title="  "))
        assert todo_store.get(alice, task.id).title == "buy milk"

    def test_missing_task(self, todo_store: TodoStore, alice) -> None:
        with pytest.raises(NotFoundError):
            todo_store.update(alice, 99999, TaskPatch(completed=True))


class TestIdRange:
    """Ids the id column cannot hold are reported as not found, never passed to the driver."""

    @pytest.mark.parametrize("todo_id", [0, -1, TODO_ID_MAX + 1, 10**23])
    def test_out_of_range_ids(self, todo_store: TodoStore, alice, todo_id: int) -> None:
        with pytest.raises(NotFoundError):
            todo_store.get(alice, todo_id)
        with pytest.raises(NotFoundError):
            todo_store.update(alice, todo_id, TaskPatch(completed=True))
        with pytest.raises(NotFoundError):
            todo_store.delete(alice, todo_id)

    def test_not_found_message_names_the_task(self, todo_store: TodoStore, alice) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            todo_store.get(alice, 424242)
        assert exc_info.value.public_message == "Todo 424242 not found."
        assert exc_info.value.detail and "424242" in exc_info.value.detail


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class TestDelete:
    def test_delete_then_get(self, todo_store: TodoStore, alice) -> None:
        task = todo_store.create(alice, "buy milk")
        todo_store.delete(alice, task.id)
        with pytest.raises(NotFoundError):
            todo_store.get(alice, task.id)

    def test_second_delete_not_found(self, todo_store: TodoStore, alice) -> None:
        task = todo_store.create(alice, "buy milk")
        todo_store.delete(alice, task.id)
        with pytest.raises(NotFoundError):
            todo_store.delete(alice, task.id)


# ---------------------------------------------------------------------------
# Ownership isolation
# ---------------------------------------------------------------------------


class TestCrossOwner:
    def _not_found_message(self, call) -> str:
        with pytest.raises(NotFoundError) as exc_info:
            call()
        return exc_info.value.public_message

    def test_get_foreign_task_looks_missing(self, todo_store: TodoStore, alice, bob) -> None:
        task = todo_store.create(alice, "private")
        foreign = self._not_found_message(lambda: todo_store.get(bob, task.id))
        todo_store.delete(alice, task.id)
        missing = self._not_found_message(lambda: todo_store.get(bob, task.id))
        assert foreign == missing

    def test_update_foreign_task_leaves_it_untouched(self, todo_store: TodoStore, alice, bob) -> None:
        task = todo_store.create(alice, "private")
        with pytest.raises(NotFoundError):
            todo_store.update(bob, task.id, TaskPatch(title="hijacked", completed=True))
        assert todo_store.get(alice, task.id) == task

    def test_delete_foreign_task_leaves_it_in_place(self, todo_store: TodoStore, alice, bob) -> None:
        task = todo_store.create(alice, "private")
        with pytest.raises(NotFoundError):
            todo_store.delete(bob, task.id)
        assert todo_store.get(alice, task.id) == task
