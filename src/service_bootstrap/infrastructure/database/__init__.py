"""
Database Infrastructure
=======================

Builds and validates the application's connection pool at startup.

Uses SQLAlchemy 2.0 with asyncpg for async PostgreSQL operations. The
connection string is read from the `PG_CONN` environment variable; the
returned engine is owned by the caller.

Usage:
    engine = await connect_database(timeout=5)
    Session = create_session_maker(engine)
    async with session_scope(Session) as session:
        ...
    await close_database(engine)
"""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from service_bootstrap.config import DATABASE_URL_ENV, Settings, get_settings
from service_bootstrap.core.exceptions import (
    DatabaseConnectionException,
    DatabaseTimeoutException,
)
from service_bootstrap.shared.infrastructure.logging import (
    LoggerLike,
    get_logger,
    log_latency,
)

_default_logger = get_logger(__name__)

_ASYNC_POSTGRES_SCHEME = "postgresql+asyncpg://"


def resolve_database_url(raw: str) -> str:
    """
    Select the async driver for libpq-style PostgreSQL URLs.

    `postgres://` and `postgresql://` become `postgresql+asyncpg://` and the
    libpq `sslmode=` query key is renamed to asyncpg's `ssl=`. Any other URL
    is returned unchanged.
    """
    for scheme in ("postgres://", "postgresql://"):
        if raw.startswith(scheme):
            raw = _ASYNC_POSTGRES_SCHEME + raw[len(scheme):]
            break
    if raw.startswith(_ASYNC_POSTGRES_SCHEME):
        raw = raw.replace("sslmode=", "ssl=")
    return raw


def _engine_options(url: URL, settings: Settings) -> dict:
    options = {
        "echo": settings.db_echo,
        "pool_pre_ping": settings.db_pool_pre_ping,  # Verify connections before using
    }
    # SQLite pools take no sizing arguments
    if url.get_backend_name() != "sqlite":
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return options


async def ping_database(engine: AsyncEngine, timeout: Optional[float] = None) -> None:
    """
    Round-trip `SELECT 1` on a pooled connection.

    Raises:
        asyncio.TimeoutError: If `timeout` seconds elapse first
        asyncio.CancelledError: If the calling task is cancelled
    """
    async def _round_trip() -> None:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    if timeout is None:
        await _round_trip()
    else:
        await asyncio.wait_for(_round_trip(), timeout)


async def connect_database(
    logger: Optional[LoggerLike] = None,
    *,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> AsyncEngine:
    """
    Create the connection pool from `PG_CONN` and verify it with a ping.

    One shot: there is no retry. On any failure the engine is disposed and
    never returned.

    Args:
        logger: Diagnostic sink (defaults to this module's logger)
        timeout: Ping deadline in seconds (defaults to
            `Settings.db_connect_timeout`)
        settings: Pool tuning (defaults to `get_settings()`)

    Returns:
        AsyncEngine: A validated engine owned by the caller

    Raises:
        DatabaseConnectionException: If the pool cannot be built or pinged
        DatabaseTimeoutException: If the ping exceeds its deadline
        asyncio.CancelledError: If the calling task is cancelled
    """
    logger = logger if logger is not None else _default_logger
    settings = settings or get_settings()
    if timeout is None:
        timeout = settings.db_connect_timeout

    raw_url = os.environ.get(DATABASE_URL_ENV, "")

    try:
        url = make_url(resolve_database_url(raw_url))
        masked = url.render_as_string(hide_password=True)
        logger.debug("Connecting to database", extra={"database_url": masked})
        engine = create_async_engine(url, **_engine_options(url, settings))
    except Exception as e:
        logger.error(
            "Unable to create database pool",
            extra={"env_variable": DATABASE_URL_ENV, "error": str(e), "error_type": type(e).__name__},
        )
        raise DatabaseConnectionException(
            f"Unable to create database pool: {e}", "create_engine"
        ) from e

    try:
        with log_latency(logger, "database_ping", database_url=masked):
            await ping_database(engine, timeout)
    except asyncio.CancelledError:
        logger.error("Database ping cancelled", extra={"database_url": masked})
        await engine.dispose()
        raise
    except asyncio.TimeoutError as e:
        # Without a deadline of ours, the timeout came from the driver or the OS
        if timeout is not None:
            logger.error(
                "Database ping timed out",
                extra={"database_url": masked, "timeout": timeout},
            )
            await engine.dispose()
            raise DatabaseTimeoutException(timeout, {"database_url": masked}) from e
        error: Exception = e
    except Exception as e:
        error = e
    else:
        logger.info("Connected to database", extra={"database_url": masked})
        return engine

    logger.error(
        "Unable to ping database",
        extra={"database_url": masked, "error": str(error), "error_type": type(error).__name__},
    )
    await engine.dispose()
    raise DatabaseConnectionException(
        f"Unable to ping database: {str(error) or type(error).__name__}",
        "ping",
        {"database_url": masked},
    ) from error


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory bound to `engine`."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Prevent lazy loading after commit
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for a unit of work.

    Commits when the block exits normally, rolls back and re-raises otherwise.

    Usage:
        async with session_scope(Session) as session:
            await session.execute(insert(users).values(name="a"))

    Yields:
        AsyncSession: SQLAlchemy async session
    """
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_database(engine: AsyncEngine, logger: Optional[LoggerLike] = None) -> None:
    """
    Dispose of the engine's pooled connections.

    Should be called during application shutdown.
    """
    logger = logger if logger is not None else _default_logger
    await engine.dispose()
    logger.info(
        "Database pool closed",
        extra={"database_url": engine.url.render_as_string(hide_password=True)},
    )


__all__ = [
    "connect_database",
    "ping_database",
    "resolve_database_url",
    "create_session_maker",
    "session_scope",
    "close_database",
]
