"""Reference data seeding tests."""
from unittest.mock import AsyncMock

import pytest

from aggregator.models import CategorySlug
from database.seed import AUTHORS, CATEGORIES, SOURCES, seed


class TestSeed:
    """Tests for database seeding."""

    def test_every_category_slug_is_seeded(self):
        assert {category["slug"] for category in CATEGORIES} == set(CategorySlug)

    def test_authors_cover_category_mapping(self):
        names = {author["name"] for author in AUTHORS}
        assert {"Claude AI Reporter", "GPT News Writer", "Gemini Analyst"} <= names

    @pytest.mark.asyncio
    async def test_seed_inserts_missing_records(self, mock_mongo_db):
        """Test an empty database receives every reference record."""
        mock_mongo_db.ai_authors.find_one = AsyncMock(return_value=None)
        mock_mongo_db.categories.find_one = AsyncMock(return_value=None)
        mock_mongo_db.news_sources.find_one = AsyncMock(return_value=None)

        counts = await seed(mock_mongo_db)

        assert counts == {"authors": len(AUTHORS), "categories": len(CATEGORIES), "sources": len(SOURCES)}
        assert mock_mongo_db.ai_authors.insert_one.await_count == len(AUTHORS)
        assert mock_mongo_db.categories.insert_one.await_count == len(CATEGORIES)
        assert mock_mongo_db.news_sources.insert_one.await_count == len(SOURCES)

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, mock_mongo_db):
        """Test existing records are left untouched."""
        mock_mongo_db.ai_authors.find_one = AsyncMock(return_value={"_id": "auth_1"})
        mock_mongo_db.categories.find_one = AsyncMock(return_value={"_id": "cat_1"})
        mock_mongo_db.news_sources.find_one = AsyncMock(return_value={"_id": "src_1"})

        await seed(mock_mongo_db)

        mock_mongo_db.ai_authors.insert_one.assert_not_awaited()
        mock_mongo_db.categories.insert_one.assert_not_awaited()
        mock_mongo_db.news_sources.insert_one.assert_not_awaited()
