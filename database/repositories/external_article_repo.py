"""External article repository: the record of every ingested source URL."""
from datetime import datetime
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from shared.utils import generate_id, get_utc_now, normalize_url


class ExternalArticleRepository:
    """Repository for ExternalItem records, unique on canonical URL."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.external_articles

    async def create_external_article(
        self,
        title: str,
        content: str,
        url: str,
        source_id: str,
        published_at: datetime
    ) -> Dict[str, Any]:
        """Create an external article, or return the one already stored for the URL."""
        normalized_url = normalize_url(url)
        record = {
            "_id": generate_id("ext"),
            "title": title,
            "content": content,
            "url": normalized_url,
            "source_id": source_id,
            "published_at": published_at,
            "processed": False,
            "created_at": get_utc_now(),
            "processed_at": None,
        }

        try:
            await self.collection.insert_one(record)
            return record
        except DuplicateKeyError:
            return await self.get_by_url(normalized_url)

    async def get_by_url(self, url: str) -> Optional[Dict[str, Any]]:
        """Get an external article by URL."""
        return await self.collection.find_one({"url": normalize_url(url)})

    async def exists(self, url: str) -> bool:
        """Check if an external article with the given URL exists."""
        count = await self.collection.count_documents({"url": normalize_url(url)}, limit=1)
        return count > 0

    async def mark_processed(self, external_id: str) -> bool:
        """Flip the processed flag once enrichment has been committed."""
        result = await self.collection.update_one(
            {"_id": external_id, "processed": False},
            {"$set": {"processed": True, "processed_at": get_utc_now()}}
        )
        return result.modified_count > 0

    async def list_stale_unprocessed(self, older_than: datetime) -> List[Dict[str, Any]]:
        """Unprocessed records created before the given time."""
        cursor = self.collection.find({
            "processed": False,
            "created_at": {"$lt": older_than}
        })
        return await cursor.to_list(length=None)

    async def delete(self, external_id: str) -> bool:
        """Delete an external article record."""
        result = await self.collection.delete_one({"_id": external_id})
        return result.deleted_count > 0
