"""Async engine and sessions for the 'postgres' grant store backend.

Nothing here runs with the in-memory backend. The engine is built on
first use so it binds to the running event loop.
"""

from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from pet_access.config import settings
from pet_access.logging_config import get_logger

logger = get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options() -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.database_echo}
    if settings.testing:
        # Each test may run on its own event loop; pooled asyncpg
        # connections cannot cross loops.
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return options


def get_engine() -> AsyncEngine:
    """The process-wide engine, created on first call."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(settings.database_url, **_engine_options())
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory handed to the SQL grant store and pet lookup."""
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_maker


async def check_database_connection() -> bool:
    """Return True if ``SELECT 1`` succeeds."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Database connectivity check failed", error=str(exc))
        return False
    return True


async def close_database() -> None:
    """Dispose the engine. The next call to get_engine builds a new one."""
    global _engine, _session_maker
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_maker = None
