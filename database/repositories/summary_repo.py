"""Summary repository: enrichment provenance for each published article."""
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from shared.utils import generate_id, get_utc_now


class SummaryRepository:
    """Repository for SummaryRecord documents, one per article."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.news_summaries

    async def create_summary(
        self,
        article_id: str,
        source_id: str,
        summary_content: str,
        key_points: List[str],
        ai_model: str
    ) -> Dict[str, Any]:
        """Create the summary record for an article, or return the existing one."""
        record = {
            "_id": generate_id("sum"),
            "article_id": article_id,
            "source_id": source_id,
            "summary_content": summary_content,
            "key_points": list(key_points),
            "ai_model": ai_model,
            "generated_at": get_utc_now(),
        }

        try:
            await self.collection.insert_one(record)
            return record
        except DuplicateKeyError:
            return await self.get_by_article(article_id)

    async def get_by_article(self, article_id: str) -> Optional[Dict[str, Any]]:
        """Get the summary record for an article."""
        return await self.collection.find_one({"article_id": article_id})
