"""HTTP fetching and main-content extraction for article pages."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
import aiohttp
from bs4 import BeautifulSoup
from shared.config import settings

logger = logging.getLogger(__name__)

NON_CONTENT_SELECTORS = "script, style, nav, header, footer, .sidebar, .advertisement"
MAIN_CONTENT_SELECTORS = "article, .content, .post-content, main"


@dataclass
class FetchResult:
    """Container for a fetched HTTP body."""
    url: str
    body: str
    success: bool
    status: Optional[int] = None
    error: Optional[str] = None


class HttpFetcher:
    """Bounded-timeout HTTP GET that reports failures instead of raising."""

    def __init__(self, timeout: int = None, user_agent: str = None):
        self.timeout = timeout or settings.fetch_timeout
        self.headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def get(self, url: str) -> FetchResult:
        """Fetch a URL and return its decoded body."""
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers
            ) as session:
                async with session.get(url) as response:
                    if response.status >= 400:
                        return FetchResult(
                            url=url,
                            body="",
                            success=False,
                            status=response.status,
                            error=f"HTTP Error {response.status}"
                        )

                    body = await response.text()
                    return FetchResult(url=url, body=body, success=True, status=response.status)

        except asyncio.TimeoutError:
            return FetchResult(
                url=url,
                body="",
                success=False,
                error=f"Timeout after {self.timeout} seconds"
            )
        except aiohttp.ClientError as e:
            return FetchResult(
                url=url,
                body="",
                success=False,
                error=f"Network error: {str(e)}"
            )


class ContentExtractor:
    """Extracts the main text block of an article page."""

    def __init__(self, http: HttpFetcher = None, max_chars: int = None):
        self.http = http or HttpFetcher()
        self.max_chars = max_chars or settings.content_max_chars

    async def extract(self, url: str) -> str:
        """
        Fetch a page and return its main content text.

        Returns an empty string on any failure so callers can fall back to
        whatever text they already have.
        """
        try:
            result = await self.http.get(url)
            if not result.success:
                logger.warning(f"Error extracting content from {url}: {result.error}")
                return ""
            return self.extract_from_html(result.body)
        except Exception as e:
            logger.error(f"Error extracting content from {url}: {e}")
            return ""

    def extract_from_html(self, html: str) -> str:
        """Strip structural noise and return the first main-content block's text."""
        soup = BeautifulSoup(html, "html.parser")

        for element in soup.select(NON_CONTENT_SELECTORS):
            element.decompose()

        main = soup.select_one(MAIN_CONTENT_SELECTORS)
        if main is None:
            return ""

        return main.get_text(separator=" ", strip=True)[:self.max_chars]
