"""
auth/store.py -- SQLAlchemy Core persistence layer for user credentials.

Pattern: Repository + Data Mapper (same as todos/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and service code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced by the database, not by a read-then-insert check
  in Python. Two concurrent registrations for the same email race on the
  constraint: exactly one INSERT commits and the other raises IntegrityError,
  which create_user() reports as DuplicateEmailError.

Errors:
  Missing rows raise NotFoundError. Storage failures and timeouts raise
  StoreError (via core.database.store_operation), so callers can tell
  "no such user" apart from "could not ask".

Layer rule: no imports from api/ or todos/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, String, Table, Text, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.database import metadata, now_iso, store_operation
from core.errors import DuplicateEmailError, NotFoundError, StoreError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

users_table = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    The engine is shared with TodoStore; this class never disposes it.

    Usage:
        store = UserStore(engine)
        user = store.create_user("alice@example.com", hasher.hash("secret1"))
        same = store.get_by_email("alice@example.com")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        with store_operation("users.init"):
            metadata.create_all(self.engine, tables=[users_table])

    def create_user(self, email: str, hashed_password: str) -> User:
        """Insert a new user and return it with its assigned ID.

        Raises DuplicateEmailError if the email is already registered,
        StoreError on any other storage failure.
        """
        stamp = now_iso()
        with store_operation("users.create"):
            try:
                with self.engine.begin() as conn:
                    result = conn.execute(
                        users_table.insert().values(
                            email=email,
                            hashed_password=hashed_password,
                            created_at=stamp,
                            updated_at=stamp,
                        )
                    )
                    user_id = result.inserted_primary_key[0]
            except IntegrityError as exc:
                raise DuplicateEmailError("users.email unique constraint") from exc
        return User(
            id=user_id,
            email=email,
            hashed_password=hashed_password,
            created_at=stamp,
            updated_at=stamp,
        )

    def get_by_email(self, email: str) -> User:
        """Look up a user by exact email (case-sensitive). Raises NotFoundError if absent."""
        with store_operation("users.get_by_email"):
            with self.engine.connect() as conn:
                row = conn.execute(select(users_table).where(users_table.c.email == email)).fetchone()
        if row is None:
            raise NotFoundError("users: no matching row", public_message="User not found.")
        return _row_to_user(row)

    def get_by_id(self, user_id: int) -> User:
        """Look up a user by primary key. Raises NotFoundError if absent."""
        with store_operation("users.get_by_id"):
            with self.engine.connect() as conn:
                row = conn.execute(select(users_table).where(users_table.c.id == user_id)).fetchone()
        if row is None:
            raise NotFoundError("users: no matching row", public_message="User not found.")
        return _row_to_user(row)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query.

        Used by the health and welcome routes; swallows StoreError into False
        because reporting "down" is the whole point of the call.
        """
        try:
            with store_operation("users.ping"):
                with self.engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
        except StoreError:
            return False
        return True


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
