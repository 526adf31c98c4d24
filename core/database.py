"""
core/database.py -- Shared SQLAlchemy engine, schema metadata, and error translation.

TodoVault talks to its database through SQLAlchemy Core (not ORM), like the
stores it serves: domain dataclasses stay the authoritative representation,
and swapping SQLite for PostgreSQL is a connection string change.

One Engine is created at startup and shared by every store. Its pool is
the only cross-request resource in the process. Every store method borrows a
connection with `with engine.connect()` / `with engine.begin()`, so the
connection returns to the pool on every exit path, including errors.

Timeouts (default 5 seconds, Settings.db_timeout_seconds):
  - pool checkout waits at most `timeout` (pool_timeout)
  - PostgreSQL: connect_timeout plus a per-session statement_timeout
  - SQLite: the driver's busy timeout

File and server databases get a QueuePool sized by pool_size / max_overflow.
In-memory SQLite gets a StaticPool: its single connection is the database.

Any SQLAlchemy failure, including a timeout, leaves a store as StoreError via
store_operation(). Integrity violations that a store wants to interpret (the
unique email constraint) are caught inside the block before they get here.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or todos/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import QueuePool, StaticPool

from core.errors import StoreError

logger = logging.getLogger("todovault.store")

# Every table registers itself here so the todos -> users foreign key resolves.
metadata = MetaData()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_sqlite_memory(db_url: str) -> bool:
    if not db_url.startswith("sqlite"):
        return False
    return db_url.rstrip("/") in ("sqlite:", "sqlite://") or ":memory:" in db_url or "mode=memory" in db_url


def create_db_engine(
    db_url: str,
    timeout_seconds: float = 5.0,
    pool_size: int = 5,
    max_overflow: int = 10,
) -> Engine:
    """Build the shared, bounded, time-limited engine.

    Usage:
        engine = create_db_engine("sqlite:///todovault.db")
        engine = create_db_engine("postgresql+psycopg://user:pw@host/db", timeout_seconds=5)
    """
    connect_args: dict = {}
    engine_kwargs: dict = {"pool_pre_ping": True}

    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = timeout_seconds

    if _is_sqlite_memory(db_url):
        # One connection keeps the in-memory database alive for every thread.
        engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update(
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=timeout_seconds,
        )
        if db_url.startswith("postgresql"):
            connect_args["connect_timeout"] = max(1, int(timeout_seconds))
            connect_args["options"] = f"-c statement_timeout={int(timeout_seconds * 1000)}"

    engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


@contextmanager
def store_operation(name: str) -> Iterator[None]:
    """Translate SQLAlchemy failures raised inside the block into StoreError.

    `name` identifies the operation in logs and in StoreError.detail. The
    original exception is chained as __cause__ for the 500 handler's traceback.
    """
    try:
        yield
    except PoolTimeoutError as exc:
        logger.error("Store operation %s timed out waiting for a connection", name)
        raise StoreError(f"{name}: connection pool timeout") from exc
    except SQLAlchemyError as exc:
        logger.error("Store operation %s failed: %s", name, type(exc).__name__)
        raise StoreError(f"{name}: {type(exc).__name__}") from exc


def now_iso() -> str:
    # Fixed-width microseconds so created_at sorts correctly as text.
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
