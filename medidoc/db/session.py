"""Database session management for the async engine.

Provides async session creation and dependency injection for FastAPI.
PostgreSQL (asyncpg) in production, SQLite (aiosqlite) in tests.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from medidoc.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


# Global engine and session maker
_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def _engine_options(database_url: str) -> dict[str, Any]:
    # SQLite uses a static pool without size limits.
    if database_url.startswith("sqlite"):
        return {}
    return {"pool_size": 10, "max_overflow": 20}


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Get or create the async database engine.

    Args:
        settings: Optional settings. If None, uses global settings.

    Returns:
        The async SQLAlchemy engine.
    """
    global _engine

    try:
        if _engine is None:
            settings = settings or get_settings()

            logger.info("Creating async database engine")

            _engine = create_async_engine(
                settings.database_url,
                echo=settings.log_level == "DEBUG",
                pool_pre_ping=True,
                **_engine_options(settings.database_url),
            )

            logger.info("Database engine created successfully")

        return _engine

    except Exception as e:
        logger.error(f"Failed to create database engine: {e}", exc_info=True)
        raise


def get_session_maker(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Get or create the async session maker.

    Args:
        settings: Optional settings. If None, uses global settings.

    Returns:
        The async session maker.
    """
    global _async_session_maker

    if _async_session_maker is None:
        engine = get_engine(settings)

        _async_session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        logger.info("Session maker created successfully")

    return _async_session_maker


async def get_async_session(settings: Settings | None = None) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session, rolling back on error.

    Args:
        settings: Optional settings. If None, uses global settings.

    Yields:
        An async database session.
    """
    session_maker = get_session_maker(settings)
    async with session_maker() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Database error: {e}", exc_info=True)
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise


async def create_all_tables(settings: Settings | None = None) -> None:
    """Create all database tables.

    Uses SQLModel metadata; there is no migration tool.

    Args:
        settings: Optional settings. If None, uses global settings.
    """
    try:
        # Import models to ensure they're registered with SQLModel metadata
        from medidoc.db import models  # noqa: F401

        engine = get_engine(settings)

        logger.info("Creating database tables...")

        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

        logger.info("Database tables created successfully")

    except Exception as e:
        logger.error(f"Failed to create database tables: {e}", exc_info=True)
        raise


async def drop_all_tables(settings: Settings | None = None) -> None:
    """Drop all database tables.

    WARNING: This deletes all patient data.

    Args:
        settings: Optional settings. If None, uses global settings.
    """
    try:
        from medidoc.db import models  # noqa: F401

        engine = get_engine(settings)

        logger.warning("Dropping all database tables...")

        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)

        logger.warning("All database tables dropped")

    except Exception as e:
        logger.error(f"Failed to drop database tables: {e}", exc_info=True)
        raise


async def init_db(settings: Settings | None = None) -> None:
    """Initialize the database schema.

    Args:
        settings: Optional settings. If None, uses global settings.
    """
    try:
        await create_all_tables(settings)
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise


async def close_db() -> None:
    """Dispose the engine and forget the session maker."""
    global _engine, _async_session_maker

    try:
        if _engine is not None:
            logger.info("Closing database engine...")
            await _engine.dispose()
            logger.info("Database engine closed")
    except Exception as e:
        logger.error(f"Error closing database engine: {e}", exc_info=True)
        raise
    finally:
        _engine = None
        _async_session_maker = None
