"""
Async database access for the reminder engine (SQLAlchemy Core + asyncpg).

The engine is created lazily from DATABASE_URL, so importing the package
never needs credentials. Reads go through get_connection(); every write
gets its own get_transaction() so one failed insert never rolls back
another recipient's notification.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .tables import metadata  # noqa: F401 - exported for Alembic

ASYNC_DRIVER = "postgresql+asyncpg"
SYNC_DRIVER = "postgresql"

# Scheme prefixes seen in hosted-Postgres connection strings
_POSTGRES_SCHEMES = ("postgresql+asyncpg://", "postgresql://", "postgres://")

_engine: AsyncEngine | None = None


def _with_driver(url: str, driver: str) -> str:
    for scheme in _POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return f"{driver}://{url[len(scheme):]}"
    return url


def _get_database_url() -> str:
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError(
            "DATABASE_URL environment variable must be set to the portal's "
            "Postgres connection string"
        )
    return _with_driver(database_url, ASYNC_DRIVER)


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def get_engine() -> AsyncEngine:
    """Get or create the async SQLAlchemy engine singleton."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            _get_database_url(),
            echo=os.environ.get("SQL_ECHO", "").lower() == "true",
            # One reminder tick holds at most one connection at a time;
            # the rest of the pool is for the host's routes
            pool_size=_int_env("DATABASE_POOL_SIZE", 5),
            max_overflow=_int_env("DATABASE_MAX_OVERFLOW", 10),
            pool_timeout=30,
            pool_recycle=1800,
            pool_pre_ping=True,
        )
    return _engine


@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """
    Read-only connection from the pool.

    Usage:
        async with get_connection() as conn:
            user_ids = await users_for_course(conn, course_id)
    """
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncConnection, None]:
    """Connection in a transaction: commits on exit, rolls back on exception."""
    async with get_engine().begin() as conn:
        yield conn


async def close_engine() -> None:
    """Dispose of the pool. Call on shutdown, after the orchestrator stops."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def is_configured() -> bool:
    """True when backend credentials (DATABASE_URL) are present."""
    return bool(os.environ.get("DATABASE_URL"))


async def check_connection() -> bool:
    """
    Probe the backend with SELECT 1.

    Returns False without connecting when no credentials are configured.
    Connection errors propagate to the caller.
    """
    if not is_configured():
        return False
    async with get_connection() as conn:
        await conn.execute(text("SELECT 1"))
    return True


def get_sync_database_url() -> str:
    """psycopg2 URL for Alembic, which runs migrations synchronously."""
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL must be set for migrations")
    return _with_driver(database_url, SYNC_DRIVER)
