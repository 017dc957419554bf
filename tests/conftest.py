"""Pytest configuration and fixtures."""
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional
from unittest.mock import MagicMock, AsyncMock

import pytest
from pymongo.errors import DuplicateKeyError

from aggregator.committer import PublicationCommitter
from aggregator.dedup import DedupLedger
from aggregator.enrichment import (
    ARTICLE_INSTRUCTION,
    Enricher,
    KEY_POINTS_INSTRUCTION,
    SUMMARY_INSTRUCTION,
)
from aggregator.events import EventPublisher
from aggregator.llm import LLMError
from aggregator.models import (
    Author,
    Category,
    CategorySlug,
    RawItem,
    RunStatusEnum,
    RunTrigger,
    Source,
    SourceKind,
)
from aggregator.pipeline import AggregationPipeline, RunLock
from shared.utils import get_utc_now, normalize_url


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class FakeExternalArticleRepository:
    """In-memory stand-in for ExternalArticleRepository."""

    def __init__(self):
        self.records: Dict[str, dict] = {}

    async def create_external_article(self, title, content, url, source_id, published_at):
        key = normalize_url(url)
        if key in self.records:
            return self.records[key]
        record = {
            "_id": _new_id("ext"),
            "title": title,
            "content": content,
            "url": key,
            "source_id": source_id,
            "published_at": published_at,
            "processed": False,
            "created_at": get_utc_now(),
            "processed_at": None,
        }
        self.records[key] = record
        return record

    async def get_by_url(self, url):
        return self.records.get(normalize_url(url))

    async def exists(self, url):
        return normalize_url(url) in self.records

    async def mark_processed(self, external_id):
        for record in self.records.values():
            if record["_id"] == external_id and not record["processed"]:
                record["processed"] = True
                record["processed_at"] = get_utc_now()
                return True
        return False

    async def list_stale_unprocessed(self, older_than):
        return [
            record for record in self.records.values()
            if not record["processed"] and record["created_at"] < older_than
        ]

    async def delete(self, external_id):
        for key, record in list(self.records.items()):
            if record["_id"] == external_id:
                del self.records[key]
                return True
        return False


class FakeArticleRepository:
    """In-memory stand-in for ArticleRepository with the same unique keys."""

    def __init__(self):
        self.articles: List[dict] = []

    async def create_article(self, title, slug, summary, content, author_id, category_id,
                             tags, published_at, read_time, source_url=None,
                             is_ai_generated=True, image_url=None):
        canonical = normalize_url(source_url) if source_url else None
        if any(a["slug"] == slug for a in self.articles):
            raise DuplicateKeyError(f"duplicate slug {slug}")
        if canonical and any(a.get("source_url") == canonical for a in self.articles):
            raise DuplicateKeyError(f"duplicate source_url {canonical}")
        article = {
            "_id": _new_id("art"),
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
            "source_url": canonical,
            "image_url": image_url,
            "view_count": 0,
        }
        self.articles.append(article)
        return article

    async def get_by_source_url(self, url):
        canonical = normalize_url(url)
        return next((a for a in self.articles if a.get("source_url") == canonical), None)

    async def slug_exists(self, slug):
        return any(a["slug"] == slug for a in self.articles)


class FakeSummaryRepository:
    """In-memory stand-in for SummaryRepository."""

    def __init__(self):
        self.summaries: Dict[str, dict] = {}

    async def create_summary(self, article_id, source_id, summary_content, key_points, ai_model):
        if article_id in self.summaries:
            return self.summaries[article_id]
        record = {
            "_id": _new_id("sum"),
            "article_id": article_id,
            "source_id": source_id,
            "summary_content": summary_content,
            "key_points": list(key_points),
            "ai_model": ai_model,
        }
        self.summaries[article_id] = record
        return record

    async def get_by_article(self, article_id):
        return self.summaries.get(article_id)


class FakeSourceRepository:
    """In-memory stand-in for SourceRepository."""

    def __init__(self, sources: List[Source]):
        self.sources = {source.id: source for source in sources}

    async def list_active_sources(self):
        return sorted(
            (s for s in self.sources.values() if s.is_active),
            key=lambda s: s.name
        )

    async def record_fetch_completed(self, source_id, timestamp):
        source = self.sources[source_id]
        self.sources[source_id] = source.model_copy(update={"last_fetched_at": timestamp})
        return True


class FakeRunRepository:
    """In-memory stand-in for RunRepository."""

    def __init__(self):
        self.runs: Dict[str, dict] = {}

    async def create_run(self, trigger, status=RunStatusEnum.RUNNING):
        run = {
            "_id": _new_id("run"),
            "trigger": RunTrigger(trigger).value,
            "status": RunStatusEnum(status).value,
            "sources_processed": 0,
            "items_fetched": 0,
            "items_skipped": 0,
            "articles_created": 0,
            "items_failed": 0,
            "degraded_stages": 0,
            "error_message": None,
            "started_at": get_utc_now(),
            "completed_at": None,
        }
        self.runs[run["_id"]] = run
        return run

    async def get_run(self, run_id):
        return self.runs.get(run_id)

    async def increment(self, run_id, **counters):
        for name, value in counters.items():
            self.runs[run_id][name] += value
        return True

    async def complete_run(self, run_id):
        self.runs[run_id]["status"] = RunStatusEnum.COMPLETED.value
        self.runs[run_id]["completed_at"] = get_utc_now()
        return True

    async def fail_run(self, run_id, error_message):
        self.runs[run_id]["status"] = RunStatusEnum.FAILED.value
        self.runs[run_id]["error_message"] = error_message
        return True

    async def delete_runs_before(self, cutoff):
        stale = [
            k for k, r in self.runs.items()
            if r["started_at"] < cutoff and r["status"] != RunStatusEnum.RUNNING.value
        ]
        for key in stale:
            del self.runs[key]
        return len(stale)


class FakeAuthorRepository:
    def __init__(self, authors: List[Author]):
        self.authors = authors

    async def list_authors(self):
        return list(self.authors)


class FakeCategoryRepository:
    def __init__(self, categories: List[Category]):
        self.categories = {category.slug: category for category in categories}

    async def get_by_slug(self, slug):
        return self.categories.get(CategorySlug(slug))


class FakeLLMClient:
    """Answers each completion shape with a canned response or a failure."""

    def __init__(self, model: str = "gpt-3.5-turbo"):
        self.model = model
        self.responses = {
            SUMMARY_INSTRUCTION: "Generated summary of the article.",
            KEY_POINTS_INSTRUCTION: '["First point", "Second point", "Third point"]',
            ARTICLE_INSTRUCTION: "Generated full article body.",
        }
        self.failing = set()
        self.calls: List[dict] = []

    async def complete(self, system, user, temperature, max_tokens):
        self.calls.append({
            "system": system,
            "user": user,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if system in self.failing:
            raise LLMError("quota exceeded")
        return self.responses[system]


class StubFetcher:
    """Returns a fixed list of items for every source and counts calls."""

    def __init__(self, items: Optional[List[RawItem]] = None):
        self.items = items or []
        self.calls = 0

    async def fetch(self, source):
        self.calls += 1
        return list(self.items)


@pytest.fixture
def mock_mongo_db():
    """Create mock MongoDB database."""
    db = MagicMock()

    for name in ("news_sources", "external_articles", "articles",
                 "news_summaries", "ai_authors", "categories", "aggregation_runs"):
        collection = MagicMock()
        collection.find_one = AsyncMock()
        collection.insert_one = AsyncMock()
        collection.update_one = AsyncMock()
        collection.count_documents = AsyncMock(return_value=0)
        collection.find = MagicMock()
        setattr(db, name, collection)

    return db


@pytest.fixture
def mock_redis_client():
    """Create mock Redis client."""
    redis = AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def feed_source():
    return Source(
        _id="src_openai",
        name="OpenAI",
        url="https://openai.com/blog",
        feed_url="https://openai.com/blog/rss.xml",
        kind=SourceKind.FEED,
    )


@pytest.fixture
def scrape_source():
    return Source(
        _id="src_anthropic",
        name="Anthropic",
        url="https://www.anthropic.com/news",
        kind=SourceKind.SCRAPE,
    )


@pytest.fixture
def authors():
    return [
        Author(_id="auth_claude", name="Claude AI Reporter"),
        Author(_id="auth_gemini", name="Gemini Analyst"),
        Author(_id="auth_gpt", name="GPT News Writer"),
    ]


@pytest.fixture
def categories():
    return [
        Category(_id=f"cat_{slug.value}", name=slug.value.title(), slug=slug)
        for slug in CategorySlug
    ]


@pytest.fixture
def sample_item():
    return RawItem(
        title="New Study on Transformer Efficiency",
        url="https://openai.com/blog/transformer-efficiency",
        content="A new research paper shows transformers can run faster. " * 10,
        published_at=datetime(2024, 12, 20, tzinfo=timezone.utc),
    )


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def events():
    return EventPublisher(redis_client=None)


@pytest.fixture
def external_repo():
    return FakeExternalArticleRepository()


@pytest.fixture
def article_repo():
    return FakeArticleRepository()


@pytest.fixture
def summary_repo():
    return FakeSummaryRepository()


@pytest.fixture
def run_repo():
    return FakeRunRepository()


@pytest.fixture
def make_enricher(llm, events):
    """Factory for an Enricher over the given reference data."""

    def _build(authors: List[Author], categories: List[Category]) -> Enricher:
        return Enricher(
            llm=llm,
            authors=FakeAuthorRepository(authors),
            categories=FakeCategoryRepository(categories),
            events=events,
        )

    return _build


@pytest.fixture
def enricher(make_enricher, authors, categories):
    return make_enricher(authors=authors, categories=categories)


@pytest.fixture
def committer(external_repo, article_repo, summary_repo):
    return PublicationCommitter(external_repo, article_repo, summary_repo)


@pytest.fixture
def make_fetcher():
    """Factory for fetchers returning fixed items."""
    return StubFetcher


@pytest.fixture
def build_pipeline(external_repo, run_repo, enricher, committer, events):
    """Factory for a pipeline over in-memory stores with the given fetchers."""

    def _build(sources: List[Source], fetchers: dict) -> AggregationPipeline:
        return AggregationPipeline(
            sources=FakeSourceRepository(sources),
            runs=run_repo,
            ledger=DedupLedger(external_repo),
            fetchers=fetchers,
            enricher=enricher,
            committer=committer,
            events=events,
            lock=RunLock(redis_client=None),
        )

    return _build
