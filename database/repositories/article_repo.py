"""Article repository for the published articles collection."""
from datetime import datetime
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.utils import generate_id, get_utc_now, normalize_url


class ArticleRepository:
    """Repository for published Article records."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.articles

    async def create_article(
        self,
        title: str,
        slug: str,
        summary: str,
        content: str,
        author_id: str,
        category_id: str,
        tags: List[str],
        published_at: datetime,
        read_time: int,
        source_url: Optional[str] = None,
        is_ai_generated: bool = True,
        image_url: Optional[str] = None
    ) -> Dict[str, Any]:
        """Insert a new article. Duplicate slug or source URL raises DuplicateKeyError."""
        article = {
            "_id": generate_id("art"),
            "title": title,
            "slug": slug,
            "summary": summary,
            "content": content,
            "author_id": author_id,
            "category_id": category_id,
            "tags": tags,
            "published_at": published_at,
            "read_time": read_time,
            "is_ai_generated": is_ai_generated,
            "image_url": image_url,
            "view_count": 0,
            "created_at": get_utc_now(),
        }
        # Left out rather than null so the sparse unique index ignores it
        if source_url:
            article["source_url"] = normalize_url(source_url)
        await self.collection.insert_one(article)
        return article

    async def get_by_source_url(self, url: str) -> Optional[Dict[str, Any]]:
        """Get the article derived from the given source URL."""
        return await self.collection.find_one({"source_url": normalize_url(url)})

    async def slug_exists(self, slug: str) -> bool:
        """Check if a slug is already taken."""
        count = await self.collection.count_documents({"slug": slug}, limit=1)
        return count > 0
