"""
Database Connection Module
Holds the shared MongoDB client for the feedback service.

The client is created lazily on first use and reused for the life of the
process; pymongo keeps its own connection pool behind it.
"""

import logging
from typing import Optional

from pymongo import AsyncMongoClient, ASCENDING, DESCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from restaurant_services.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

_client: Optional[AsyncMongoClient] = None


def get_client() -> AsyncMongoClient:
    """Return the process-wide client, creating it on first call."""
    global _client
    if _client is None:
        _client = AsyncMongoClient(
            settings.mongodb_url,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
            tz_aware=True,
        )
    return _client


def get_collection() -> AsyncCollection:
    """
    Dependency injection for FastAPI routes.
    Returns the feedback collection on the shared client.
    """
    db = get_client()[settings.mongodb_database]
    return db[settings.mongodb_collection]


async def init_indexes() -> None:
    """Create the lookup indexes used by the list and stats queries."""
    collection = get_collection()
    await collection.create_index([("user_id", ASCENDING)])
    await collection.create_index([("rating", ASCENDING)])
    await collection.create_index([("created_at", DESCENDING)])
    logger.info("✅ Feedback indexes ready")


async def check_connection() -> bool:
    """Liveness probe: the `ping` admin command."""
    try:
        await get_client().admin.command("ping")
        return True
    except PyMongoError as e:
        logger.debug(f"MongoDB probe failed: {e}")
        return False


async def close_connection() -> None:
    """Close the shared client, if one was opened."""
    global _client
    if _client is not None:
        await _client.close()
        _client = None
        logger.info("🔌 MongoDB connection closed")
