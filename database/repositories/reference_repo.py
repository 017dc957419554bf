"""Reference data repositories: AI authors and categories."""
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from aggregator.models import Author, Category, CategorySlug
from shared.utils import generate_id


class AuthorRepository:
    """Read access to seeded AI authors."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.ai_authors

    async def list_authors(self) -> List[Author]:
        """All authors ordered by name."""
        cursor = self.collection.find({}).sort("name", 1)
        documents = await cursor.to_list(length=None)
        return [Author(**doc) for doc in documents]

    async def upsert_author(
        self,
        name: str,
        bio: str,
        avatar: Optional[str] = None,
        specialization: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Insert an author unless one with the same name exists."""
        existing = await self.collection.find_one({"name": name})
        if existing:
            return existing

        author = {
            "_id": generate_id("auth"),
            "name": name,
            "bio": bio,
            "avatar": avatar,
            "specialization": specialization or [],
        }
        try:
            await self.collection.insert_one(author)
            return author
        except DuplicateKeyError:
            return await self.collection.find_one({"name": name})


class CategoryRepository:
    """Read access to seeded categories."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.categories

    async def get_by_slug(self, slug: CategorySlug) -> Optional[Category]:
        """Get a category by its slug."""
        doc = await self.collection.find_one({"slug": CategorySlug(slug).value})
        return Category(**doc) if doc else None

    async def upsert_category(
        self,
        name: str,
        slug: CategorySlug,
        description: str,
        color: Optional[str] = None
    ) -> Dict[str, Any]:
        """Insert a category unless one with the same slug exists."""
        slug_value = CategorySlug(slug).value
        existing = await self.collection.find_one({"slug": slug_value})
        if existing:
            return existing

        category = {
            "_id": generate_id("cat"),
            "name": name,
            "slug": slug_value,
            "description": description,
            "color": color,
        }
        try:
            await self.collection.insert_one(category)
            return category
        except DuplicateKeyError:
            return await self.collection.find_one({"slug": slug_value})
