"""Async SQLAlchemy engine and session management."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any, TypeVar

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

logger = structlog.get_logger()

T = TypeVar("T")


def _engine_options(url: str) -> dict[str, Any]:
    """Pool options per backend. SQLite (local runs, tests) takes none of the asyncpg knobs."""
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "echo": False,
        "connect_args": {"statement_cache_size": 0},
    }


def _use_explicit_sqlite_transactions(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the outer transaction."""

    @event.listens_for(engine.sync_engine, "connect")
    def _no_driver_transactions(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


async def init_db(url: str) -> None:
    """Initialize the database engine and session factory."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_async_engine(url, **_engine_options(url))
    if url.startswith("sqlite"):
        _use_explicit_sqlite_transactions(_engine)
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def close_db() -> None:
    """Dispose of the database engine."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def get_engine() -> AsyncEngine:
    """Get the async engine instance."""
    if _engine is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _engine


async def create_all() -> None:
    """Create every mapped table. Used for SQLite runs; Postgres goes through Alembic."""
    from ecotrack.db.base import Base
    from ecotrack.db import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    async with _session_factory() as session:
        yield session


async def flush_or_conflict(session: AsyncSession) -> None:
    """Flush pending changes; a stale version stamp becomes ConflictError."""
    from sqlalchemy.orm.exc import StaleDataError

    from ecotrack.errors import ConflictError

    try:
        await session.flush()
    except StaleDataError as exc:
        msg = "Concurrent update detected, please retry"
        raise ConflictError(msg) from exc


async def _commit_or_conflict(session: AsyncSession) -> None:
    from sqlalchemy.orm.exc import StaleDataError

    from ecotrack.errors import ConflictError

    try:
        await session.commit()
    except StaleDataError as exc:
        msg = "Concurrent update detected, please retry"
        raise ConflictError(msg) from exc


async def commit_with_retry(
    session: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    attempts: int | None = None,
) -> T:
    """Run a write operation and commit it, re-running it after a ConflictError.

    Each failed attempt is rolled back before the next one, so the operation
    re-reads fresh rows. After the last attempt the ConflictError propagates
    and the caller sees a 409. Other errors propagate on the first attempt.

    Rollback expires every instance in the session: operation must not touch
    ORM objects loaded before the call (pass ids, not instances).
    """
    from ecotrack.config import get_settings
    from ecotrack.errors import ConflictError

    attempts = max(1, attempts or get_settings().conflict_retry_attempts)
    for attempt in range(1, attempts):
        try:
            result = await operation()
            await _commit_or_conflict(session)
            return result
        except ConflictError:
            await session.rollback()
            logger.info("write_conflict_retry", attempt=attempt, attempts=attempts)

    result = await operation()
    await _commit_or_conflict(session)
    return result
