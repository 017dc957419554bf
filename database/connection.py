"""Database connection setup for MongoDB and Redis."""
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
import redis.asyncio as redis
from shared.config import settings


class DatabaseConnection:
    """Manages MongoDB and Redis connections."""

    _mongo_client: Optional[AsyncIOMotorClient] = None
    _redis_client: Optional[redis.Redis] = None
    _db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def init_mongo(cls) -> AsyncIOMotorDatabase:
        """Initialize MongoDB connection."""
        if cls._mongo_client is None:
            cls._mongo_client = AsyncIOMotorClient(settings.mongo_url)
            cls._db = cls._mongo_client[settings.mongo_db_name]
            await cls._setup_indexes()
        return cls._db

    @classmethod
    async def _setup_indexes(cls):
        """Set up the unique keys the pipeline relies on."""
        if cls._db is None:
            return

        await cls._db.news_sources.create_index("url", unique=True)
        await cls._db.news_sources.create_index([("is_active", 1), ("name", 1)])

        # Canonical URL is the deduplication key
        await cls._db.external_articles.create_index("url", unique=True)
        await cls._db.external_articles.create_index([("processed", 1), ("created_at", 1)])

        await cls._db.articles.create_index("slug", unique=True)
        await cls._db.articles.create_index("source_url", unique=True, sparse=True)
        await cls._db.articles.create_index("published_at")

        await cls._db.news_summaries.create_index("article_id", unique=True)

        await cls._db.ai_authors.create_index("name", unique=True)
        await cls._db.categories.create_index("slug", unique=True)

        await cls._db.aggregation_runs.create_index("started_at")

    @classmethod
    async def get_mongo_db(cls) -> AsyncIOMotorDatabase:
        """Get MongoDB database instance."""
        if cls._db is None:
            await cls.init_mongo()
        return cls._db

    @classmethod
    async def init_redis(cls) -> redis.Redis:
        """Initialize Redis connection."""
        if cls._redis_client is None:
            cls._redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True
            )
        return cls._redis_client

    @classmethod
    async def close_connections(cls):
        """Close all database connections."""
        if cls._mongo_client:
            cls._mongo_client.close()
            cls._mongo_client = None
            cls._db = None
        if cls._redis_client:
            await cls._redis_client.close()
            cls._redis_client = None


# Convenience functions
async def get_db() -> AsyncIOMotorDatabase:
    """Dependency for getting MongoDB database."""
    return await DatabaseConnection.get_mongo_db()
