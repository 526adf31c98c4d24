"""
tests/conftest.py -- Shared test fixtures for TodoVault.

This module provides:
  - make_settings(): Settings pointing at an isolated in-memory database
  - engine / user_store / todo_store: per-test stores on a fresh database
  - make_principal: creates a real user row and returns its Principal
  - api_client: TestClient around a fully wired app for HTTP integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
create_db_engine() gives such URLs an explicit StaticPool, so the database
lives exactly as long as the engine.

bcrypt_rounds=4 keeps hashing fast; the cost factor does not change behaviour.

DEBUG is set before any app import so a stray get_settings() call never
refuses to start for lack of JWT_SECRET.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator

os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import create_app
from auth.models import Principal
from auth.store import UserStore
from core.config import Settings
from core.database import create_db_engine
from todos.store import TodoStore

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789abcdef"


def memory_url(name: str) -> str:
    return f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true"


def make_settings(db_name: str, **overrides) -> Settings:
    """Settings for an isolated app instance. Unique db_name per app."""
    values = {
        "debug": True,
        "jwt_secret": TEST_SECRET,
        "database_url": memory_url(db_name),
        "bcrypt_rounds": 4,
        "token_expire_seconds": 3600,
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# Store fixtures -- one fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = create_db_engine(memory_url(f"test_store_{uuid.uuid4().hex}"))
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def todo_store(engine: Engine, user_store: UserStore) -> TodoStore:
    # user_store first: todos.owner_id references users.id
    return TodoStore(engine)


@pytest.fixture
def make_principal(user_store: UserStore) -> Callable[[str], Principal]:
    """Return a factory that inserts a user and hands back its Principal.

    The hash is a placeholder; store tests never verify passwords.
    """

    def _make(email: str) -> Principal:
        user = user_store.create_user(email, "not-a-real-hash")
        return Principal(user_id=user.id, email=user.email)

    return _make


# ---------------------------------------------------------------------------
# Module-scoped HTTP client -- one app per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient whose lifespan wired real stores on a private database.

    The app goes through its normal startup: engine, stores, hasher, token
    service and auth gate are all built from the test Settings.
    """
    db_name = f"test_api_{request.module.__name__.replace('.', '_')}_{uuid.uuid4().hex[:8]}"
    app = create_app(make_settings(db_name))
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
