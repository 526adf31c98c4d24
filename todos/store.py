"""
todos/store.py -- Owner-scoped SQLAlchemy persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the dataclasses in todos/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. TodoStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Ownership (IDOR guard):
  Every method takes the authenticated Principal as a required first
  argument, and every statement carries `owner_id = :principal` in its WHERE
  clause (or VALUES, for inserts). There is no method that reads or writes a
  task by id alone.

  A task owned by someone else and a task that does not exist produce the
  same NotFoundError with the same message. Callers cannot probe which task
  ids exist.

Atomicity:
  update() and delete() are single owner-bound statements whose rowcount
  decides NotFoundError. There is no check-then-act window in which a
  concurrent delete could make an update "succeed" on a missing row.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TodoStore(engine)
    task = store.create(principal, "buy milk")
    store.update(principal, task.id, TaskPatch(completed=True))
    store.delete(principal, task.id)
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table, and_, select
from sqlalchemy.engine import Engine

from auth.models import Principal
from auth.store import users_table
from core.database import metadata, now_iso, store_operation
from core.errors import InvalidPatchError, NotFoundError, ValidationError
from todos.models import Task, TaskPatch

TITLE_MAX_LENGTH = 500
# Largest value the Integer id column holds on every supported backend.
TODO_ID_MAX = 2**31 - 1

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

todos_table = Table(
    "todos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(TITLE_MAX_LENGTH), nullable=False),
    Column("completed", Boolean, nullable=False, default=False),
    Column("owner_id", Integer, ForeignKey(users_table.c.id), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _owned(owner: Principal, todo_id: int):
    """WHERE clause selecting one task only if it belongs to owner.

    An id outside the column range cannot name a row, so it is reported as
    not found instead of reaching the driver.
    """
    if not 0 < todo_id <= TODO_ID_MAX:
        raise _not_found(todo_id)
    return and_(todos_table.c.id == todo_id, todos_table.c.owner_id == owner.user_id)


def _not_found(todo_id: int) -> NotFoundError:
    # Same message whether the row is missing or foreign-owned.
    return NotFoundError(f"todos: no row {todo_id} for owner", public_message=f"Todo {todo_id} not found.")


def _check_title(title: str) -> str:
    if not title or not title.strip():
        raise ValidationError("title must not be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"title longer than {TITLE_MAX_LENGTH} characters")
    return title


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TodoStore:
    """Repository for Task entities, scoped to one owner per call."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        with store_operation("todos.init"):
            metadata.create_all(self.engine, tables=[todos_table])

    def create(self, owner: Principal, title: str, completed: bool = False) -> Task:
        """Insert a task owned by `owner` and return it with store-assigned fields."""
        _check_title(title)
        stamp = now_iso()
        with store_operation("todos.create"):
            with self.engine.begin() as conn:
                result = conn.execute(
                    todos_table.insert().values(
                        title=title,
                        completed=completed,
                        owner_id=owner.user_id,
                        created_at=stamp,
                        updated_at=stamp,
                    )
                )
                todo_id = result.inserted_primary_key[0]
        return Task(
            id=todo_id,
            title=title,
            completed=completed,
            owner_id=owner.user_id,
            created_at=stamp,
            updated_at=stamp,
        )

    def list_all(self, owner: Principal) -> list[Task]:
        """Return every task of `owner`, newest-created first. Empty list if none."""
        with store_operation("todos.list_all"):
            with self.engine.connect() as conn:
                rows = conn.execute(
                    select(todos_table)
                    .where(todos_table.c.owner_id == owner.user_id)
                    .order_by(todos_table.c.created_at.desc(), todos_table.c.id.desc())
                ).fetchall()
        return [_row_to_task(r) for r in rows]

    def get(self, owner: Principal, todo_id: int) -> Task:
        """Return one task of `owner`. Raises NotFoundError if missing or not theirs."""
        with store_operation("todos.get"):
            with self.engine.connect() as conn:
                row = conn.execute(select(todos_table).where(_owned(owner, todo_id))).fetchone()
        if row is None:
            raise _not_found(todo_id)
        return _row_to_task(row)

    def update(self, owner: Principal, todo_id: int, patch: TaskPatch) -> Task:
        """Apply only the supplied fields, refresh updated_at, return the new state.

        Raises InvalidPatchError before touching storage if the patch is empty,
        NotFoundError if the task is missing or not owned by `owner`.
        """
        if patch.is_empty():
            raise InvalidPatchError(f"empty patch for todo {todo_id}")

        values: dict = {"updated_at": now_iso()}
        if patch.title is not None:
            values["title"] = _check_title(patch.title)
        if patch.completed is not None:
            values["completed"] = patch.completed

        row = None
        with store_operation("todos.update"):
            with self.engine.begin() as conn:
                result = conn.execute(todos_table.update().where(_owned(owner, todo_id)).values(**values))
                if result.rowcount == 1:
                    row = conn.execute(select(todos_table).where(_owned(owner, todo_id))).fetchone()
        if row is None:
            raise _not_found(todo_id)
        return _row_to_task(row)

    def delete(self, owner: Principal, todo_id: int) -> None:
        """Delete one task of `owner`. Raises NotFoundError unless exactly one row went."""
        with store_operation("todos.delete"):
            with self.engine.begin() as conn:
                result = conn.execute(todos_table.delete().where(_owned(owner, todo_id)))
                deleted = result.rowcount
        if deleted != 1:
            raise _not_found(todo_id)


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        completed=bool(row.completed),
        owner_id=row.owner_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
