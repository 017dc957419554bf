"""Dedup ledger: which external URLs have already been ingested."""
from typing import List

from aggregator.models import RawItem
from database.repositories.external_article_repo import ExternalArticleRepository
from shared.utils import normalize_url


class DedupLedger:
    """Answers whether a URL was seen by a previous run."""

    def __init__(self, external_repo: ExternalArticleRepository):
        self.external_repo = external_repo

    async def has_seen(self, url: str) -> bool:
        """True when an external article with this canonical URL is stored."""
        return await self.external_repo.exists(url)

    async def filter_unseen(self, items: List[RawItem]) -> List[RawItem]:
        """
        Drop items already ingested and repeats within the batch.

        Order of the surviving items is preserved.
        """
        unseen = []
        batch_urls = set()

        for item in items:
            canonical_url = normalize_url(item.url)
            if canonical_url in batch_urls:
                continue
            batch_urls.add(canonical_url)

            if await self.has_seen(item.url):
                continue
            unseen.append(item)

        return unseen
