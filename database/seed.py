"""Seed the reference data the pipeline reads: authors, categories and sources."""
import asyncio
import logging
from motor.motor_asyncio import AsyncIOMotorDatabase

from aggregator.models import CategorySlug
from database.connection import DatabaseConnection
from database.repositories.reference_repo import AuthorRepository, CategoryRepository
from database.repositories.source_repo import SourceRepository

logger = logging.getLogger(__name__)

AUTHORS = [
    {
        "name": "Claude AI Reporter",
        "bio": "Specialized in analyzing and reporting on machine learning breakthroughs and AI research developments.",
        "avatar": "/avatars/claude.jpg",
        "specialization": ["Machine Learning", "AI Research", "Neural Networks"],
    },
    {
        "name": "GPT News Writer",
        "bio": "Focuses on AI industry news, startup developments, and technology trends in artificial intelligence.",
        "avatar": "/avatars/gpt.jpg",
        "specialization": ["AI Industry", "Startups", "Technology Trends"],
    },
    {
        "name": "Gemini Analyst",
        "bio": "Expert in AI ethics, policy developments, and the societal impact of artificial intelligence.",
        "avatar": "/avatars/gemini.jpg",
        "specialization": ["AI Ethics", "Policy", "Social Impact"],
    },
]

CATEGORIES = [
    {
        "name": "Machine Learning",
        "slug": CategorySlug.MACHINE_LEARNING,
        "description": "Latest developments in ML algorithms and applications",
        "color": "#3b82f6",
    },
    {
        "name": "AI Industry",
        "slug": CategorySlug.AI_INDUSTRY,
        "description": "Business news and market developments in AI",
        "color": "#10b981",
    },
    {
        "name": "Research",
        "slug": CategorySlug.RESEARCH,
        "description": "Academic research and scientific breakthroughs",
        "color": "#8b5cf6",
    },
    {
        "name": "Ethics & Policy",
        "slug": CategorySlug.ETHICS_POLICY,
        "description": "AI governance, regulation, and ethical considerations",
        "color": "#f59e0b",
    },
    {
        "name": "Applications",
        "slug": CategorySlug.APPLICATIONS,
        "description": "Real-world AI applications across industries",
        "color": "#ef4444",
    },
]

SOURCES = [
    {
        "name": "OpenAI",
        "url": "https://openai.com/blog",
        "feed_url": "https://openai.com/blog/rss.xml",
        "logo_url": "/logos/openai.png",
    },
    {
        "name": "Google AI",
        "url": "https://ai.googleblog.com",
        "feed_url": "https://ai.googleblog.com/feeds/posts/default",
        "logo_url": "/logos/google-ai.png",
    },
    {
        "name": "Anthropic",
        "url": "https://www.anthropic.com/news",
        "logo_url": "/logos/anthropic.png",
    },
    {
        "name": "Meta AI",
        "url": "https://ai.meta.com/blog",
        "logo_url": "/logos/meta-ai.png",
    },
]


async def seed(db: AsyncIOMotorDatabase) -> dict:
    """Insert missing reference data. Existing records are left untouched."""
    authors = AuthorRepository(db)
    for author in AUTHORS:
        await authors.upsert_author(**author)
    logger.info(f"Seeded {len(AUTHORS)} AI authors")

    categories = CategoryRepository(db)
    for category in CATEGORIES:
        await categories.upsert_category(**category)
    logger.info(f"Seeded {len(CATEGORIES)} categories")

    sources = SourceRepository(db)
    for source in SOURCES:
        await sources.upsert_source(**source)
    logger.info(f"Seeded {len(SOURCES)} news sources")

    return {"authors": len(AUTHORS), "categories": len(CATEGORIES), "sources": len(SOURCES)}


async def main():
    db = await DatabaseConnection.init_mongo()
    try:
        await seed(db)
        logger.info("Database seeding completed successfully")
    finally:
        await DatabaseConnection.close_connections()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(main())
