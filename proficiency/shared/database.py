"""Database connection and session management for PostgreSQL."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from proficiency.shared.config import get_settings

logger = logging.getLogger(__name__)


# ===================
# SQLAlchemy Base
# ===================


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


# ===================
# Engine / Sessions
# ===================

# Store engine per event loop ID to avoid cross-loop connection issues
_engines: dict[int, AsyncEngine] = {}
_session_factories: dict[int, async_sessionmaker[AsyncSession]] = {}


def _get_loop_id() -> int:
    """Get current event loop ID for tracking connections."""
    try:
        loop = asyncio.get_running_loop()
        return id(loop)
    except RuntimeError:
        # No running loop - use 0 as fallback
        return 0


def create_engine_for_url(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the driver.

    SQLite (aiosqlite) does not accept queue pool sizing arguments, so
    those are only passed for server databases.
    """
    settings = get_settings()
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
    )


def get_engine() -> AsyncEngine:
    """Get SQLAlchemy async engine for current event loop."""
    loop_id = _get_loop_id()

    if loop_id not in _engines:
        settings = get_settings()
        _engines[loop_id] = create_engine_for_url(settings.database_url, echo=settings.db_echo)
    return _engines[loop_id]


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get SQLAlchemy session factory for current event loop."""
    loop_id = _get_loop_id()

    if loop_id not in _session_factories:
        _session_factories[loop_id] = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factories[loop_id]


@asynccontextmanager
async def get_db_session(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session context manager.

    Commits on clean exit and rolls back on any exception.

    Usage:
        async with get_db_session() as session:
            result = await session.execute(query)
    """
    factory = factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            try:
                await session.commit()
            except Exception:
                # Rollback if commit itself fails to prevent connection leak
                await session.rollback()
                raise
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Initialize database tables.

    Imports every module's models so they register on ``Base.metadata``.
    In production, use migrations instead.
    """
    from proficiency.modules.levels import models as _levels_models  # noqa: F401
    from proficiency.modules.prompts import models as _prompts_models  # noqa: F401
    from proficiency.modules.streaks import models as _streaks_models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def close_db() -> None:
    """Close database connections.

    Call this on application shutdown.
    """
    for loop_id, engine in list(_engines.items()):
        try:
            await engine.dispose()
        except Exception as e:
            logger.warning(f"Error disposing engine for loop {loop_id}: {e}")
    _engines.clear()
    _session_factories.clear()


# ===================
# Lifecycle Helpers
# ===================


async def check_db_health(max_retries: int = 3, retry_delay: float = 1.0) -> bool:
    """Check database health with retries.

    Args:
        max_retries: Maximum number of retry attempts
        retry_delay: Delay between retries in seconds

    Returns:
        True if database is healthy, False otherwise
    """
    for attempt in range(max_retries):
        try:
            engine = get_engine()
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.debug("Database health check passed")
            return True
        except Exception as e:
            logger.warning(f"Database health check failed (attempt {attempt + 1}/{max_retries}): {e}")
            if attempt < max_retries - 1:
                await asyncio.sleep(retry_delay)
    return False


async def get_health_status() -> dict:
    """Get health status of the database connection."""
    db_healthy = await check_db_health(max_retries=1, retry_delay=0)
    backend = "sqlite" if get_settings().is_sqlite else "postgresql"

    return {
        "database": {
            "healthy": db_healthy,
            "type": backend,
        },
        "overall": db_healthy,
    }


async def startup() -> None:
    """Verify the database connection on application startup."""
    if not await check_db_health(max_retries=5, retry_delay=2.0):
        raise RuntimeError("Failed to connect to database after retries")
    logger.info("Database connection initialized successfully")


async def shutdown() -> None:
    """Close all connections on application shutdown."""
    await close_db()
    logger.info("Database connections closed")
