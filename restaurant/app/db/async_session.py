"""Async SQLAlchemy engine and sessions.

SQLite through aiosqlite is the default backend. Pointing ``DATABASE_URL`` at
``postgresql+asyncpg://`` switches to PostgreSQL with a sized pool.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from restaurant.app.core.config import settings
from restaurant.app.core.logging import get_logger

logger = get_logger(__name__)

_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(url: str) -> Dict[str, Any]:
    # SQLite uses a static per-file pool; only server databases get sizing.
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_recycle": settings.db_pool_recycle,
    }


@lru_cache(maxsize=1)
def get_async_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Engine shared by the whole process, created on first use.

    Args:
        database_url: Overrides ``settings.database_url``
    """
    url = database_url or settings.database_url
    options = _engine_options(url)
    engine = create_async_engine(url, echo=False, **options)
    logger.info(f"Database engine ready ({engine.dialect.name}, {options or 'default pool'})")
    return engine


def get_async_session_maker() -> async_sessionmaker[AsyncSession]:
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_maker


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Session context manager; ``get_db`` wraps it for request handlers."""
    async with get_async_session_maker()() as session:
        yield session


async def init_async_db() -> None:
    """Create missing tables."""
    from restaurant.app.db import models  # noqa: F401 - populates Base.metadata
    from restaurant.app.db.base import Base

    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")


async def check_database() -> bool:
    """True when the database answers a trivial query."""
    try:
        async with get_async_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


async def close_async_engine() -> None:
    """Dispose the engine so the next use starts a fresh one."""
    global _session_maker

    try:
        await get_async_engine().dispose()
    except RuntimeError:
        # Raised when the engine was created on another event loop.
        logger.debug("Engine dispose skipped (event loop mismatch)")

    get_async_engine.cache_clear()
    _session_maker = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request.

    Commits when the handler returns, rolls back when it raises.
    """
    async with get_async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
