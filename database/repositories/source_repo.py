"""Source registry: the configured external news sources."""
from datetime import datetime
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from aggregator.models import Source, SourceKind
from shared.utils import generate_id


class SourceRepository:
    """Repository for news source reads and the few writes the pipeline makes."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.news_sources

    async def list_active_sources(self) -> List[Source]:
        """Active sources ordered by name."""
        cursor = self.collection.find({"is_active": True}).sort("name", 1)
        documents = await cursor.to_list(length=None)
        return [Source(**doc) for doc in documents]

    async def list_sources(self) -> List[Source]:
        """All sources ordered by name."""
        cursor = self.collection.find({}).sort("name", 1)
        documents = await cursor.to_list(length=None)
        return [Source(**doc) for doc in documents]

    async def record_fetch_completed(self, source_id: str, timestamp: datetime) -> bool:
        """Record the end of a full pipeline pass over a source."""
        result = await self.collection.update_one(
            {"_id": source_id},
            {"$set": {"last_fetched_at": timestamp}}
        )
        return result.modified_count > 0

    async def update_source(self, source_id: str, **changes) -> Optional[Source]:
        """
        Partially update a source. Returns the updated source.

        Only the given fields are written. `name`, `url` and `is_active` given
        as None are ignored; `feed_url` and `logo_url` given as None or empty
        are cleared. Changing `feed_url` recomputes the ingestion kind. A
        homepage URL already used by another source raises DuplicateKeyError.
        """
        updates = {}
        for field in ("name", "url", "is_active"):
            if changes.get(field) is not None:
                updates[field] = changes[field]
        for field in ("feed_url", "logo_url"):
            if field in changes:
                updates[field] = changes[field] or None

        if "feed_url" in updates:
            updates["kind"] = SourceKind.FEED.value if updates["feed_url"] else SourceKind.SCRAPE.value

        if not updates:
            result = await self.collection.find_one({"_id": source_id})
        else:
            result = await self.collection.find_one_and_update(
                {"_id": source_id},
                {"$set": updates},
                return_document=True
            )
        return Source(**result) if result else None

    async def upsert_source(
        self,
        name: str,
        url: str,
        feed_url: Optional[str] = None,
        logo_url: Optional[str] = None,
        is_active: bool = True
    ) -> Dict[str, Any]:
        """Insert a source unless one with the same homepage URL exists."""
        existing = await self.collection.find_one({"url": url})
        if existing:
            return existing

        source = {
            "_id": generate_id("src"),
            "name": name,
            "url": url,
            "feed_url": feed_url,
            # The ingestion strategy is fixed when the source is configured
            "kind": SourceKind.FEED.value if feed_url else SourceKind.SCRAPE.value,
            "is_active": is_active,
            "last_fetched_at": None,
            "logo_url": logo_url,
        }

        try:
            await self.collection.insert_one(source)
            return source
        except DuplicateKeyError:
            return await self.collection.find_one({"url": url})
