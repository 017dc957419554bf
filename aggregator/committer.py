"""Publication committer: writes an enriched item and its provenance."""
import logging
from typing import Any, Dict, Optional
from pymongo.errors import DuplicateKeyError

from aggregator.models import EnrichedArticle
from database.repositories.article_repo import ArticleRepository
from database.repositories.external_article_repo import ExternalArticleRepository
from database.repositories.summary_repo import SummaryRepository
from shared.utils import slug_candidate

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 100


class SlugUnavailableError(Exception):
    """No free slug could be found for an article title."""


class PublicationCommitter:
    """
    Persists an enriched item as external article, article and summary.

    Writes happen in order and are not rolled back. Each step checks for a
    record left by an earlier partial commit of the same URL and reuses it,
    so re-running an item never publishes a second article for its URL.
    """

    def __init__(
        self,
        external_repo: ExternalArticleRepository,
        article_repo: ArticleRepository,
        summary_repo: SummaryRepository
    ):
        self.external_repo = external_repo
        self.article_repo = article_repo
        self.summary_repo = summary_repo

    async def commit(self, enriched: EnrichedArticle) -> Optional[Dict[str, Any]]:
        """
        Commit an enriched item.

        Returns the article, or None when the URL was already processed.
        Persistence errors propagate to the caller.
        """
        item = enriched.item

        external = await self.external_repo.create_external_article(
            title=item.title,
            content=item.content,
            url=item.url,
            source_id=enriched.source.id,
            published_at=item.published_at
        )
        if external["processed"]:
            logger.info(f"External article {item.url} already processed, skipping")
            return None

        article = await self.article_repo.get_by_source_url(item.url)
        if article is None:
            article = await self._create_article(enriched)
        else:
            logger.warning(f"Reusing article {article['_id']} left by an earlier partial commit of {item.url}")

        existing_summary = await self.summary_repo.get_by_article(article["_id"])
        if existing_summary is None:
            await self.summary_repo.create_summary(
                article_id=article["_id"],
                source_id=enriched.source.id,
                summary_content=enriched.summary,
                key_points=enriched.key_points,
                ai_model=enriched.ai_model
            )

        await self.external_repo.mark_processed(external["_id"])
        return article

    async def _create_article(self, enriched: EnrichedArticle) -> Dict[str, Any]:
        for attempt in range(1, MAX_SLUG_ATTEMPTS + 1):
            slug = slug_candidate(enriched.slug, attempt)
            if await self.article_repo.slug_exists(slug):
                continue
            try:
                return await self.article_repo.create_article(
                    title=enriched.item.title,
                    slug=slug,
                    summary=enriched.summary,
                    content=enriched.content,
                    author_id=enriched.author.id,
                    category_id=enriched.category.id,
                    tags=enriched.tags,
                    published_at=enriched.item.published_at,
                    read_time=enriched.read_time,
                    source_url=enriched.item.url
                )
            except DuplicateKeyError:
                # Slug taken between the check and the insert, or the source URL
                # was published concurrently
                existing = await self.article_repo.get_by_source_url(enriched.item.url)
                if existing is not None:
                    return existing

        raise SlugUnavailableError(f"No free slug for '{enriched.item.title}'")
