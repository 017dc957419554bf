"""Daily housekeeping for records left behind by interrupted commits."""
import logging
from dataclasses import dataclass, asdict
from datetime import timedelta
from typing import Dict
from motor.motor_asyncio import AsyncIOMotorDatabase

from database.repositories.article_repo import ArticleRepository
from database.repositories.external_article_repo import ExternalArticleRepository
from database.repositories.run_repo import RunRepository
from database.repositories.summary_repo import SummaryRepository
from shared.config import settings
from shared.utils import get_utc_now

logger = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    repaired: int = 0
    released: int = 0
    runs_deleted: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class Housekeeper:
    """
    Resolves external articles stuck at processed=false.

    A stale record whose article was published gets its summary record and
    processed flag completed. A stale record with no article is deleted so
    the next run ingests the URL again.
    """

    def __init__(
        self,
        external_repo: ExternalArticleRepository,
        article_repo: ArticleRepository,
        summary_repo: SummaryRepository,
        run_repo: RunRepository,
        retention_hours: int = None,
        run_retention_days: int = None,
        ai_model: str = None
    ):
        self.external_repo = external_repo
        self.article_repo = article_repo
        self.summary_repo = summary_repo
        self.run_repo = run_repo
        self.retention = timedelta(hours=retention_hours or settings.cleanup_retention_hours)
        self.run_retention = timedelta(days=run_retention_days or settings.run_retention_days)
        self.ai_model = ai_model or settings.openai_model

    @classmethod
    def from_database(cls, db: AsyncIOMotorDatabase) -> "Housekeeper":
        return cls(
            external_repo=ExternalArticleRepository(db),
            article_repo=ArticleRepository(db),
            summary_repo=SummaryRepository(db),
            run_repo=RunRepository(db)
        )

    async def run(self) -> CleanupReport:
        report = CleanupReport()
        now = get_utc_now()

        for external in await self.external_repo.list_stale_unprocessed(now - self.retention):
            try:
                article = await self.article_repo.get_by_source_url(external["url"])
                if article is None:
                    await self.external_repo.delete(external["_id"])
                    report.released += 1
                    continue

                if await self.summary_repo.get_by_article(article["_id"]) is None:
                    await self.summary_repo.create_summary(
                        article_id=article["_id"],
                        source_id=external["source_id"],
                        summary_content=article["summary"],
                        key_points=[],
                        ai_model=self.ai_model
                    )
                await self.external_repo.mark_processed(external["_id"])
                report.repaired += 1
            except Exception as e:
                logger.error(f"Cleanup failed for external article {external['url']}: {e}")

        report.runs_deleted = await self.run_repo.delete_runs_before(now - self.run_retention)

        logger.info(f"Cleanup tasks completed: {report.as_dict()}")
        return report
