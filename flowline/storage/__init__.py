"""Database connection and session management.

Provides the async SQLAlchemy engine, session factory, and session helpers.
Uses asyncpg for PostgreSQL async support.

All singleton access is guarded by a threading.RLock; RLock because
get_session_factory() calls get_engine() while holding the lock.
"""

import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from flowline.settings import Settings, get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_init_lock = threading.RLock()


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Get or create the async database engine.

    Args:
        settings: Optional settings override. Uses get_settings() if not provided.

    Returns:
        Configured AsyncEngine instance.
    """
    global _engine

    if _engine is None:
        with _init_lock:
            if _engine is None:
                settings = settings or get_settings()
                _engine = create_async_engine(
                    str(settings.database_url),
                    pool_size=settings.database_pool_size,
                    max_overflow=settings.database_max_overflow,
                    pool_timeout=settings.database_pool_timeout,
                    pool_recycle=settings.database_pool_recycle,
                    pool_pre_ping=True,
                    echo=settings.debug,
                )

    return _engine


def get_session_factory(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory."""
    global _session_factory

    if _session_factory is None:
        with _init_lock:
            if _session_factory is None:
                engine = get_engine(settings)
                _session_factory = async_sessionmaker(
                    bind=engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )

    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session with automatic cleanup.

    Usage:
        async with get_session() as session:
            result = await session.execute(query)
    """
    factory = get_session_factory()
    session = factory()
    try:
        yield session
    finally:
        await session.close()


@asynccontextmanager
async def get_committing_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a session that commits on successful exit.

    On exception the session is closed without committing, so every
    write made through it is discarded together.

    Usage:
        async with get_committing_session() as session:
            session.add(entity)
            await session.flush()
    """
    async with get_session() as session:
        yield session
        await session.commit()


async def init_db() -> None:
    """Eagerly open the connection pool and verify connectivity."""
    engine = get_engine()
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    """Dispose of the engine at shutdown."""
    global _engine, _session_factory

    with _init_lock:
        if _engine is not None:
            await _engine.dispose()
            _engine = None
            _session_factory = None


__all__ = [
    "close_db",
    "get_committing_session",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
]
