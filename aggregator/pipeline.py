"""Aggregation pipeline: sources to fetched items to published articles."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.exceptions import LockError, RedisError

from aggregator.committer import PublicationCommitter
from aggregator.dedup import DedupLedger
from aggregator.enrichment import Enricher
from aggregator.events import EventPublisher, EventType
from aggregator.fetchers import Fetcher, build_fetchers
from aggregator.llm import LLMClient
from aggregator.models import RawItem, RunStatusEnum, RunTrigger, Source, SourceKind
from database.repositories.article_repo import ArticleRepository
from database.repositories.external_article_repo import ExternalArticleRepository
from database.repositories.reference_repo import AuthorRepository, CategoryRepository
from database.repositories.run_repo import RunRepository
from database.repositories.source_repo import SourceRepository
from database.repositories.summary_repo import SummaryRepository
from shared.config import settings
from shared.utils import get_utc_now

logger = logging.getLogger(__name__)


class ItemOutcome:
    """Per-item result constants."""
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SourceStats:
    """Counters collected while processing one source."""
    items_fetched: int = 0
    items_skipped: int = 0
    articles_created: int = 0
    items_failed: int = 0
    degraded_stages: int = 0

    def as_increments(self) -> Dict[str, int]:
        return {
            "sources_processed": 1,
            "items_fetched": self.items_fetched,
            "items_skipped": self.items_skipped,
            "articles_created": self.articles_created,
            "items_failed": self.items_failed,
            "degraded_stages": self.degraded_stages,
        }


class RunLock:
    """
    Single-run mutex shared by scheduled and manual triggers.

    Always guards the current process; with a Redis client it also guards
    every process sharing that Redis.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        key: str = None,
        ttl: int = None
    ):
        self.redis = redis_client
        self.key = key or settings.run_lock_key
        self.ttl = ttl or settings.run_lock_ttl
        self._held = False
        self._redis_lock = None

    @property
    def held(self) -> bool:
        return self._held

    async def acquire(self) -> bool:
        """
        Try to take the lock without waiting.

        If Redis cannot be reached the in-process flag alone guards the run
        and a warning is logged.
        """
        if self._held:
            return False
        self._held = True

        if self.redis is not None:
            lock = self.redis.lock(self.key, timeout=self.ttl, blocking=False)
            try:
                acquired = await lock.acquire()
            except (RedisError, OSError) as e:
                logger.warning(f"Redis unavailable for run lock {self.key}, "
                               f"guarding this process only: {e}")
                return True
            if not acquired:
                self._held = False
                return False
            self._redis_lock = lock

        return True

    async def refresh(self):
        """Reset the Redis lock expiry to the full TTL."""
        if self._redis_lock is None:
            return
        try:
            await self._redis_lock.reacquire()
        except (LockError, RedisError, OSError) as e:
            logger.warning(f"Could not extend run lock {self.key}: {e}")

    async def release(self):
        """Release the lock if this instance holds it."""
        if self._redis_lock is not None:
            try:
                await self._redis_lock.release()
            except LockError as e:
                logger.warning(f"Run lock {self.key} expired before release: {e}")
            except (RedisError, OSError) as e:
                logger.warning(f"Could not release run lock {self.key}: {e}")
            self._redis_lock = None
        self._held = False


class AggregationPipeline:
    """
    One explicitly constructed pipeline per process.

    Sources and their items are processed strictly one at a time. Errors are
    contained at the narrowest scope: an item failure never stops its source,
    a source failure never stops the run, and a run failure is recorded
    instead of raised so the scheduler keeps ticking.
    """

    def __init__(
        self,
        sources: SourceRepository,
        runs: RunRepository,
        ledger: DedupLedger,
        fetchers: Mapping[SourceKind, Fetcher],
        enricher: Enricher,
        committer: PublicationCommitter,
        events: EventPublisher = None,
        lock: RunLock = None
    ):
        self.sources = sources
        self.runs = runs
        self.ledger = ledger
        self.fetchers = fetchers
        self.enricher = enricher
        self.committer = committer
        self.events = events or EventPublisher()
        self.lock = lock or RunLock()

    @classmethod
    def from_database(
        cls,
        db: AsyncIOMotorDatabase,
        redis_client: Optional[redis.Redis] = None,
        llm: LLMClient = None
    ) -> "AggregationPipeline":
        """Wire a pipeline against a MongoDB database and optional Redis."""
        external_repo = ExternalArticleRepository(db)
        ledger = DedupLedger(external_repo)
        events = EventPublisher(redis_client)

        return cls(
            sources=SourceRepository(db),
            runs=RunRepository(db),
            ledger=ledger,
            fetchers=build_fetchers(ledger),
            enricher=Enricher(
                llm=llm or LLMClient(),
                authors=AuthorRepository(db),
                categories=CategoryRepository(db),
                events=events
            ),
            committer=PublicationCommitter(
                external_repo=external_repo,
                article_repo=ArticleRepository(db),
                summary_repo=SummaryRepository(db)
            ),
            events=events,
            lock=RunLock(redis_client)
        )

    @property
    def is_running(self) -> bool:
        return self.lock.held

    async def run(self, trigger: RunTrigger = RunTrigger.SCHEDULED) -> Optional[Dict[str, Any]]:
        """Execute one aggregation run. Returns the final run record."""
        try:
            acquired = await self.lock.acquire()
        except Exception as e:
            logger.exception(f"Could not acquire run lock: {e}")
            return None

        if not acquired:
            await self.events.emit(EventType.RUN_SKIPPED, trigger=RunTrigger(trigger).value,
                                   reason="another run is in progress")
            try:
                return await self.runs.create_run(trigger, status=RunStatusEnum.SKIPPED)
            except Exception as e:
                logger.error(f"Failed to record skipped run: {e}")
                return None

        run_id = None
        try:
            run = await self.runs.create_run(trigger)
            run_id = run["_id"]
            await self.events.emit(EventType.RUN_STARTED, run_id=run_id,
                                   trigger=RunTrigger(trigger).value)

            for source in await self.sources.list_active_sources():
                await self.lock.refresh()
                await self.process_source(source, run_id)

            await self.runs.complete_run(run_id)
            run = await self.runs.get_run(run_id)
            await self.events.emit(EventType.RUN_COMPLETED, run_id=run_id,
                                   articles_created=run["articles_created"] if run else None)
            return run
        except asyncio.CancelledError:
            logger.warning(f"News aggregation run {run_id} cancelled")
            if run_id is not None:
                try:
                    await self.runs.fail_run(run_id, "cancelled")
                except Exception as record_error:
                    logger.error(f"Failed to record cancellation of run {run_id}: {record_error}")
            raise
        except Exception as e:
            logger.exception(f"Error in news aggregation: {e}")
            await self.events.emit(EventType.RUN_FAILED, run_id=run_id, error=str(e))
            if run_id is None:
                return None
            try:
                await self.runs.fail_run(run_id, str(e))
                return await self.runs.get_run(run_id)
            except Exception as record_error:
                logger.error(f"Failed to record failure of run {run_id}: {record_error}")
                return None
        finally:
            await self.lock.release()

    async def process_source(self, source: Source, run_id: str) -> SourceStats:
        """Fetch, deduplicate, enrich and commit everything new from one source."""
        stats = SourceStats()
        logger.info(f"Processing source: {source.name}")

        try:
            fetcher = self.fetchers[source.kind]
            items = await fetcher.fetch(source)
            stats.items_fetched = len(items)

            unseen = await self.ledger.filter_unseen(items)
            stats.items_skipped = len(items) - len(unseen)

            for item in unseen:
                outcome = await self.process_item(item, source, stats)
                if outcome == ItemOutcome.CREATED:
                    stats.articles_created += 1
                elif outcome == ItemOutcome.SKIPPED:
                    stats.items_skipped += 1
                else:
                    stats.items_failed += 1

            await self.sources.record_fetch_completed(source.id, get_utc_now())
            await self.runs.increment(run_id, **stats.as_increments())
            await self.events.emit(EventType.SOURCE_COMPLETED, run_id=run_id,
                                   source=source.name, **stats.as_increments())
        except Exception as e:
            logger.error(f"Error processing source {source.name}: {e}")

        return stats

    async def process_item(self, item: RawItem, source: Source, stats: SourceStats) -> str:
        """Enrich and commit one item, containing any failure to the item."""
        try:
            enriched = await self.enricher.enrich(item, source)
            if enriched is None:
                return ItemOutcome.SKIPPED
            stats.degraded_stages += len(enriched.degraded_stages)

            article = await self.committer.commit(enriched)
            if article is None:
                return ItemOutcome.SKIPPED

            await self.events.emit(EventType.ARTICLE_CREATED, article_id=article["_id"],
                                   slug=article["slug"], url=item.url,
                                   degraded_stages=enriched.degraded_stages)
            return ItemOutcome.CREATED
        except Exception as e:
            await self.events.emit(EventType.ITEM_FAILED, url=item.url,
                                   source=source.name, error=str(e))
            return ItemOutcome.FAILED
