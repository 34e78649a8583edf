"""
Database Connection Module
Handles the MySQL connection pool using the SQLAlchemy async engine.
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from restaurant_services.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

DATABASE_URL = settings.orders_database_dsn


def _engine_options(url: str) -> dict:
    """Pool sizing only applies to server databases, not SQLite files."""
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.db_pool_size,  # Bounded pool
        "max_overflow": settings.db_max_overflow,
        "pool_recycle": 3600,
    }


# Create async engine
engine = create_async_engine(
    DATABASE_URL,
    echo=settings.db_echo,
    **_engine_options(DATABASE_URL),
)

# Session factory - creates new database sessions
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # Objects remain accessible after commit
)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register the models on Base.metadata
    from restaurant_services.orders import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Orders tables ready")


async def check_connection() -> bool:
    """
    Liveness probe for the orders store.

    Borrows a pooled connection, runs SELECT 1 and hands it back.
    Any driver or network failure counts as "down".
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.debug(f"MySQL probe failed: {e}")
        return False
