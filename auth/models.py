"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in todos/models.py -- dataclasses own domain shape; stores and routes do the work.

Layer rule: no imports from api/ or todos/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered identity.

    email is unique and compared case-sensitively, exactly as stored.
    hashed_password is the bcrypt output; it must never reach a response model.
    Users are created once at registration and never mutated or deleted.
    """

    email: str
    hashed_password: str
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a protected request.

    Only AuthGate produces these, from a verified access token. Every
    TodoStore operation requires one, so there is no code path that reaches
    task data without passing through the gate first.
    """

    user_id: int
    email: str | None = None
