"""
API request and response models for TodoVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
todos/models.py, which own the internal domain representation. Route handlers
map between the two.

No response model has a password or hash field. UserResponse.from_user() is
the only path from a User to JSON, so the bcrypt hash cannot leak by accident.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES
from todos.models import Task
from todos.store import TITLE_MAX_LENGTH

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one "@", something on each side, a dot in the domain.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PASSWORD_MIN_LENGTH = 6


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """Reject passwords bcrypt would truncate or refuse (over 72 UTF-8 bytes)."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /auth/login.

    No strength rules here: a password that could never have been registered
    simply fails to match, with the same 401 as any other mismatch.
    """

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. Never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class LoginResponse(BaseModel):
    """Response body for POST /auth/login."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime


class ProtectedTestResponse(BaseModel):
    """Response body for GET /protected-test."""

    model_config = ConfigDict(frozen=True)

    message: str
    user_id: int


# ---------------------------------------------------------------------------
# Todos -- request models
# ---------------------------------------------------------------------------


class TodoCreate(BaseModel):
    """Request body for POST /todos."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    completed: bool = False


class TodoUpdate(BaseModel):
    """Request body for PUT /todos/{id}.

    Both fields are optional; the store rejects a body that sets neither.
    An explicit null counts as "not supplied".
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    completed: Optional[bool] = None


# ---------------------------------------------------------------------------
# Todos -- response models
# ---------------------------------------------------------------------------


class TodoResponse(BaseModel):
    """A single task as returned by every /todos route."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    completed: bool
    owner_id: int
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TodoResponse":
        return cls(
            id=task.id,
            title=task.title,
            completed=task.completed,
            owner_id=task.owner_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class DeleteResponse(BaseModel):
    """Confirmation body for DELETE /todos/{id}."""

    model_config = ConfigDict(frozen=True)

    message: str
    id: int


# ---------------------------------------------------------------------------
# Errors and system
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class WelcomeResponse(BaseModel):
    """Response for GET /."""

    model_config = ConfigDict(frozen=True)

    message: str
    success: bool
    database: str
