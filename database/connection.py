"""Database connection setup for MongoDB and Redis."""
import logging
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.errors import PyMongoError
import redis.asyncio as redis
from shared.config import settings

logger = logging.getLogger(__name__)

# Articles are unique per (source_name, identity_key); dedup relies on it
INDEXES = {
    "articles": [
        IndexModel([("source_name", ASCENDING), ("identity_key", ASCENDING)], unique=True),
        IndexModel([("published_date", DESCENDING)]),
        IndexModel([("categorization_status", ASCENDING), ("is_hidden", ASCENDING)]),
    ],
    "sources": [
        IndexModel([("is_enabled", ASCENDING), ("name", ASCENDING)]),
    ],
    "fetch_run_logs": [
        IndexModel([("start_time", DESCENDING)]),
    ],
}


class DatabaseConnection:
    """Process-wide MongoDB and Redis handles shared by the API and the runner."""

    _mongo_client: Optional[AsyncIOMotorClient] = None
    _redis_client: Optional[redis.Redis] = None
    _db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def init_mongo(cls) -> AsyncIOMotorDatabase:
        """Connect to MongoDB and make sure the collections are indexed."""
        if cls._mongo_client is None:
            cls._mongo_client = AsyncIOMotorClient(settings.mongo_url)
            cls._db = cls._mongo_client[settings.mongo_db_name]
            await cls.ensure_indexes(cls._db)
        return cls._db

    @staticmethod
    async def ensure_indexes(db: AsyncIOMotorDatabase):
        for collection, indexes in INDEXES.items():
            names = await db[collection].create_indexes(indexes)
            logger.debug(f"Indexes on {collection}: {names}")

    @classmethod
    async def init_redis(cls) -> redis.Redis:
        """Create the Redis client used for progress events."""
        if cls._redis_client is None:
            cls._redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True
            )
        return cls._redis_client

    @classmethod
    async def close_connections(cls):
        if cls._mongo_client:
            cls._mongo_client.close()
            cls._mongo_client = None
            cls._db = None
        if cls._redis_client:
            await cls._redis_client.aclose()
            cls._redis_client = None


async def get_db() -> AsyncIOMotorDatabase:
    """Dependency for getting MongoDB database."""
    return await DatabaseConnection.init_mongo()


async def ping(db: AsyncIOMotorDatabase) -> bool:
    """Round-trip to the server; False when it cannot be reached."""
    try:
        await db.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False
