"""
Database Infrastructure
=======================

Manages database connections, session lifecycle, and engine configuration.

Uses SQLAlchemy 2.0 async sessions: asyncpg for PostgreSQL deployments,
aiosqlite for local development and tests. Every storage call is bounded by
``settings.db_operation_timeout_seconds``; timeouts and connection-level
driver errors surface as ``StorageUnavailableException``.
"""

import asyncio
import functools
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncGenerator, Callable, Optional

from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy import event
from sqlalchemy.orm import DeclarativeBase

from helpdesk.config import settings
from helpdesk.core import StorageUnavailableException
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

SessionScope = Callable[[], AsyncContextManager[AsyncSession]]


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    SQLAlchemy 2.0 style using DeclarativeBase.
    All models inherit from this class.
    """
    pass


# Global engine and session maker
_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If engine has not been initialized
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_database() first.")
    return _engine


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {
            "connect_args": {"timeout": settings.db_operation_timeout_seconds},
        }
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout_seconds,
        "pool_pre_ping": True,  # Verify connections before using
        "connect_args": {"timeout": settings.db_operation_timeout_seconds},
    }


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself on SQLite so SAVEPOINTs behave.

    The sqlite3 driver otherwise defers BEGIN and breaks begin_nested(),
    which attachment inserts rely on.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_database(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Initialize the database engine and session maker.

    Should be called during application startup.
    """
    global _engine, _session_maker

    url = database_url or settings.database_url
    # asyncpg spells the TLS option "ssl"
    url = url.replace("sslmode=", "ssl=")

    _engine = create_async_engine(url, echo=settings.debug, **_engine_options(url))
    if url.startswith("sqlite"):
        enable_sqlite_savepoints(_engine)

    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Prevent lazy loading after commit
        autoflush=False,
    )

    return _engine


async def close_database() -> None:
    """
    Close the database engine and dispose of connections.

    Should be called during application shutdown.
    """
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, (asyncio.TimeoutError, PoolTimeoutError, DisconnectionError, OperationalError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


async def _commit(session: AsyncSession) -> None:
    try:
        await asyncio.wait_for(session.commit(), timeout=settings.db_operation_timeout_seconds)
    except Exception as e:
        if _is_transient(e):
            raise StorageUnavailableException(
                "Commit did not complete; re-query state before retrying",
                {"error": type(e).__name__},
            ) from e
        raise


@asynccontextmanager
async def _scoped_session(maker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with maker() as session:
        try:
            yield session
            await _commit(session)
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Async generator for database sessions.

    For use with FastAPI's Depends() - FastAPI handles the lifecycle.
    The session commits when the request handler returns and rolls back
    when it raises.
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _scoped_session(_session_maker) as session:
        yield session


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for database sessions.

    For use in background tasks and the escalation scan, where each unit of
    work needs its own transaction.

    Usage:
        async with get_session_context() as session:
            ...
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _scoped_session(_session_maker) as session:
        yield session


def session_scope_for(maker: async_sessionmaker[AsyncSession]) -> SessionScope:
    """Build a per-unit-of-work session scope bound to ``maker``."""
    return lambda: _scoped_session(maker)


def get_session_scope() -> SessionScope:
    """
    Session scope bound to the application session maker.

    FastAPI dependency for handlers that run several transactions, such as
    the escalation scan.
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return session_scope_for(_session_maker)


def storage_call(operation: str):
    """
    Decorator for repository coroutines.

    Bounds the call by the configured operation timeout and converts
    transient driver failures into ``StorageUnavailableException``.
    Other errors propagate unchanged.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await asyncio.wait_for(
                    func(*args, **kwargs),
                    timeout=settings.db_operation_timeout_seconds,
                )
            except Exception as e:
                if not _is_transient(e):
                    raise
                logger.warning(
                    "Storage call failed",
                    extra={"operation": operation, "error": type(e).__name__},
                )
                raise StorageUnavailableException(
                    f"Storage unavailable during {operation}",
                    {"operation": operation},
                ) from e
        return wrapper
    return decorator


async def create_tables(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create all database tables.

    This should only be used for development/testing.
    Production should use migrations.
    """
    # Import models so they register on Base.metadata
    import helpdesk.knowledge.infrastructure.models  # noqa: F401
    import helpdesk.sla.infrastructure.models  # noqa: F401
    import helpdesk.tickets.infrastructure.models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
