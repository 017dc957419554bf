"""Fetch strategies that turn a configured source into candidate items."""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import urljoin

import feedparser
from bs4 import BeautifulSoup

from aggregator.dedup import DedupLedger
from aggregator.extractor import ContentExtractor, HttpFetcher
from aggregator.models import RawItem, Source, SourceKind
from shared.config import settings
from shared.utils import get_utc_now, normalize_url, validate_url

logger = logging.getLogger(__name__)

ITEM_CONTAINER_SELECTORS = "article, .post, .news-item"
ITEM_HEADING_SELECTORS = "h1, h2, h3, .title"
ITEM_TEXT_SELECTORS = "p, .content, .summary"


class Fetcher(ABC):
    """A strategy for pulling candidate items from one source."""

    kind: SourceKind

    @abstractmethod
    async def fetch(self, source: Source) -> List[RawItem]:
        """Return candidate items for a source. Never raises."""


class FeedFetcher(Fetcher):
    """Reads a source's feed and enriches new entries with their page content."""

    kind = SourceKind.FEED

    def __init__(
        self,
        ledger: DedupLedger,
        http: HttpFetcher = None,
        extractor: ContentExtractor = None,
        max_items: int = None
    ):
        self.ledger = ledger
        self.http = http or HttpFetcher()
        self.extractor = extractor or ContentExtractor(self.http)
        self.max_items = max_items or settings.feed_max_items

    async def fetch(self, source: Source) -> List[RawItem]:
        try:
            result = await self.http.get(source.feed_url)
            if not result.success:
                logger.error(f"Error fetching RSS for {source.name}: {result.error}")
                return []

            feed = feedparser.parse(result.body)
            if feed.bozo and not feed.entries:
                logger.error(f"Error parsing RSS for {source.name}: {feed.bozo_exception}")
                return []

            items = []
            seen_urls = set()
            for entry in feed.entries[:self.max_items]:
                title = entry.get("title", "").strip()
                link = entry.get("link", "").strip()
                published_at = _entry_published_at(entry)
                if not (title and link and published_at):
                    continue

                # Known URLs are skipped before paying for the page fetch
                canonical_url = normalize_url(link)
                if canonical_url in seen_urls or await self.ledger.has_seen(link):
                    logger.debug(f"Skipping already ingested entry {link}")
                    continue
                seen_urls.add(canonical_url)

                content = await self.extractor.extract(link)
                items.append(RawItem(
                    title=title,
                    url=link,
                    content=content or _entry_snippet(entry) or _entry_content(entry),
                    published_at=published_at,
                ))

            return items
        except Exception as e:
            logger.error(f"Error fetching RSS for {source.name}: {e}")
            return []


class PageScraper(Fetcher):
    """Approximates article boundaries on a homepage with generic selectors."""

    kind = SourceKind.SCRAPE

    def __init__(self, http: HttpFetcher = None, max_items: int = None):
        self.http = http or HttpFetcher()
        self.max_items = max_items or settings.scrape_max_items

    async def fetch(self, source: Source) -> List[RawItem]:
        try:
            result = await self.http.get(source.url)
            if not result.success:
                logger.error(f"Error scraping {source.name}: {result.error}")
                return []
            return self.parse_listing(result.body, source.url)
        except Exception as e:
            logger.error(f"Error scraping {source.name}: {e}")
            return []

    def parse_listing(self, html: str, base_url: str) -> List[RawItem]:
        """Take heading, link and first paragraph from the first few containers."""
        soup = BeautifulSoup(html, "html.parser")
        now = get_utc_now()

        items = []
        for element in soup.select(ITEM_CONTAINER_SELECTORS)[:self.max_items]:
            heading = element.select_one(ITEM_HEADING_SELECTORS)
            anchor = element.find("a")
            paragraph = element.select_one(ITEM_TEXT_SELECTORS)

            title = heading.get_text(strip=True) if heading else ""
            href = anchor.get("href") if anchor else None
            if not title or not href:
                continue

            url = urljoin(base_url, href)
            if not validate_url(url):
                continue

            content = paragraph.get_text(strip=True) if paragraph else ""
            items.append(RawItem(
                title=title,
                url=url,
                content=content or title,
                published_at=now,
            ))

        return items


def build_fetchers(ledger: DedupLedger, http: HttpFetcher = None) -> Dict[SourceKind, Fetcher]:
    """Registry of fetch strategies keyed by source kind."""
    http = http or HttpFetcher()
    return {
        SourceKind.FEED: FeedFetcher(ledger, http=http),
        SourceKind.SCRAPE: PageScraper(http=http),
    }


def _entry_published_at(entry) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


def _entry_snippet(entry) -> str:
    summary = entry.get("summary", "")
    if not summary:
        return ""
    return BeautifulSoup(summary, "html.parser").get_text(separator=" ", strip=True)


def _entry_content(entry) -> str:
    contents = entry.get("content") or []
    if not contents:
        return ""
    return contents[0].get("value", "") or ""
