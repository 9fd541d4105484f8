"""
PostgreSQL Database Connection Manager
The engine is created lazily so the local fallback store never needs a database
"""
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool
from sqlalchemy.orm import declarative_base
import os
import logging

from .config import settings

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()

# Determine pool class based on environment
USE_NULL_POOL = os.environ.get("USE_NULL_POOL", "false").lower() == "true"

# Global engine variable - created on first use
_engine = None
_async_session_maker = None


def get_engine():
    """Get or create the database engine"""
    global _engine

    if _engine is None:
        if USE_NULL_POOL:
            pool_options = {"poolclass": NullPool}
        else:
            pool_options = {
                "poolclass": AsyncAdaptedQueuePool,
                "pool_size": settings.pool_size,
                "max_overflow": settings.max_overflow,
                "pool_recycle": settings.pool_recycle,
            }
        try:
            _engine = create_async_engine(
                settings.database_url,
                pool_pre_ping=settings.pool_pre_ping,
                echo=False,
                **pool_options,
            )
            logger.info("Database engine created successfully")
        except Exception as e:
            logger.error(f"Failed to create database engine: {e}")
            raise

    return _engine


def get_session_maker():
    """Get or create the session maker"""
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_maker


def reset_engine():
    """Forget the engine so the next connection reloads configuration"""
    global _engine, _async_session_maker
    _engine = None
    _async_session_maker = None
    logger.info("Database engine reset - will reload config on next connection")


async def init_postgres_db() -> None:
    """
    Initialize database by creating all tables defined in models.
    This should be called during application startup.
    """
    # Register the table classes on Base.metadata
    from . import models  # noqa: F401

    engine = get_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("PostgreSQL tables initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize PostgreSQL tables: {e}")
        raise


async def close_postgres_db() -> None:
    """Close the database connection pool when the application shuts down."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        reset_engine()
        logger.info("PostgreSQL connection pool closed")
