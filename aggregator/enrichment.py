"""Enrichment chain: turns a raw external item into a publishable article."""
import json
import re
from typing import List, Optional, Sequence, Tuple

from aggregator.events import EventPublisher, EventType
from aggregator.llm import LLMClient
from aggregator.models import Author, CategorySlug, EnrichedArticle, RawItem, Source
from database.repositories.reference_repo import AuthorRepository, CategoryRepository
from shared.utils import calculate_read_time, create_slug

# First matching rule wins, so order matters
CATEGORY_RULES: Tuple[Tuple[CategorySlug, Tuple[str, ...]], ...] = (
    (CategorySlug.RESEARCH, ("research", "paper", "study")),
    (CategorySlug.ETHICS_POLICY, ("ethics", "policy", "regulation")),
    (CategorySlug.AI_INDUSTRY, ("industry", "business", "market")),
    (CategorySlug.APPLICATIONS, ("application", "deployment", "use case")),
)
DEFAULT_CATEGORY = CategorySlug.MACHINE_LEARNING

AUTHOR_BY_CATEGORY = {
    CategorySlug.MACHINE_LEARNING: "Claude AI Reporter",
    CategorySlug.RESEARCH: "Claude AI Reporter",
    CategorySlug.AI_INDUSTRY: "GPT News Writer",
    CategorySlug.APPLICATIONS: "GPT News Writer",
    CategorySlug.ETHICS_POLICY: "Gemini Analyst",
}

TAG_VOCABULARY = (
    "AI", "Machine Learning", "Deep Learning", "Neural Networks",
    "OpenAI", "Google", "Microsoft", "Meta", "Research", "Technology",
)
MAX_TAGS = 5

SUMMARY_INSTRUCTION = (
    "You are an AI news summarizer. Create concise, informative summaries "
    "of AI-related news articles in 2-3 sentences."
)
KEY_POINTS_INSTRUCTION = (
    "Extract 3-5 key points from the article. Return as a JSON array of strings."
)
ARTICLE_INSTRUCTION = (
    "You are an AI journalist. Write a comprehensive news article based on the "
    "provided information. Make it engaging and informative."
)

SUMMARY_INPUT_CHARS = 2000
KEY_POINTS_INPUT_CHARS = 1500
ARTICLE_INPUT_CHARS = 1500
SUMMARY_FALLBACK_CHARS = 200
MAX_KEY_POINTS = 5
PLACEHOLDER_KEY_POINTS = ["Key AI development", "Industry impact", "Technical advancement"]

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


def _searchable_text(item: RawItem) -> str:
    return f"{item.title} {item.content}".lower()


def categorize(item: RawItem) -> CategorySlug:
    """Keyword-match title and content against the category decision list."""
    text = _searchable_text(item)
    for category, keywords in CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def select_author(category: CategorySlug, authors: Sequence[Author]) -> Optional[Author]:
    """Preferred author for the category, else any configured author."""
    if not authors:
        return None
    preferred = AUTHOR_BY_CATEGORY.get(category, AUTHOR_BY_CATEGORY[DEFAULT_CATEGORY])
    for author in authors:
        if author.name == preferred:
            return author
    return authors[0]


def extract_tags(item: RawItem) -> List[str]:
    """Vocabulary terms found in the item, in vocabulary order."""
    text = _searchable_text(item)
    return [tag for tag in TAG_VOCABULARY if tag.lower() in text][:MAX_TAGS]


def parse_key_points(response: str) -> Tuple[List[str], bool]:
    """
    Parse a key-point completion.

    Returns the points and whether the response was a well-formed JSON
    array. Anything else is split into lines instead.
    """
    cleaned = _CODE_FENCE.sub("", response.strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, list):
        points = [str(point).strip() for point in parsed if str(point).strip()]
        if points:
            return points, True

    lines = [line.strip() for line in cleaned.splitlines() if line.strip()]
    return lines[:MAX_KEY_POINTS], False


class Enricher:
    """Runs the per-item enrichment stages in their fixed order."""

    def __init__(
        self,
        llm: LLMClient,
        authors: AuthorRepository,
        categories: CategoryRepository,
        events: EventPublisher = None
    ):
        self.llm = llm
        self.authors = authors
        self.categories = categories
        self.events = events or EventPublisher()

    async def enrich(self, item: RawItem, source: Source) -> Optional[EnrichedArticle]:
        """
        Enrich one item.

        Language-model failures degrade to fixed fallbacks. Returns None only
        when reference data (category or author) is missing, in which case
        nothing should be written for the item.
        """
        degraded: List[str] = []

        category_slug = categorize(item)
        category = await self.categories.get_by_slug(category_slug)
        if category is None:
            await self.events.emit(
                EventType.ITEM_SKIPPED,
                url=item.url,
                reason=f"category '{category_slug.value}' is not configured"
            )
            return None

        summary = await self.summarize(item, degraded)
        key_points = await self.extract_key_points(item, degraded)

        author = select_author(category_slug, await self.authors.list_authors())
        if author is None:
            await self.events.emit(
                EventType.ITEM_SKIPPED,
                url=item.url,
                reason="no authors are configured"
            )
            return None

        tags = extract_tags(item)
        content = await self.generate_full_content(item, summary, key_points, degraded)

        return EnrichedArticle(
            item=item,
            source=source,
            category=category,
            author=author,
            summary=summary,
            key_points=key_points,
            tags=tags,
            content=content,
            slug=create_slug(item.title),
            read_time=calculate_read_time(item.content),
            ai_model=self.llm.model,
            degraded_stages=degraded,
        )

    async def summarize(self, item: RawItem, degraded: List[str]) -> str:
        fallback = item.content[:SUMMARY_FALLBACK_CHARS]
        try:
            return await self.llm.complete(
                system=SUMMARY_INSTRUCTION,
                user=(
                    f"Summarize this article:\n\nTitle: {item.title}\n\n"
                    f"Content: {item.content[:SUMMARY_INPUT_CHARS]}"
                ),
                temperature=0.7,
                max_tokens=200,
            )
        except Exception as e:
            await self._degraded("summary", item, e, degraded)
            return fallback

    async def extract_key_points(self, item: RawItem, degraded: List[str]) -> List[str]:
        try:
            response = await self.llm.complete(
                system=KEY_POINTS_INSTRUCTION,
                user=(
                    f"Extract key points from:\n\nTitle: {item.title}\n\n"
                    f"Content: {item.content[:KEY_POINTS_INPUT_CHARS]}"
                ),
                temperature=0.3,
                max_tokens=200,
            )
        except Exception as e:
            await self._degraded("key_points", item, e, degraded)
            return list(PLACEHOLDER_KEY_POINTS)

        points, well_formed = parse_key_points(response)
        if not well_formed:
            await self._degraded("key_points_parse", item, "response was not a JSON array", degraded)
        return points or list(PLACEHOLDER_KEY_POINTS)

    async def generate_full_content(
        self,
        item: RawItem,
        summary: str,
        key_points: List[str],
        degraded: List[str]
    ) -> str:
        try:
            return await self.llm.complete(
                system=ARTICLE_INSTRUCTION,
                user=(
                    f"Write a news article based on:\n\nTitle: {item.title}\n\n"
                    f"Summary: {summary}\n\n"
                    f"Key Points: {', '.join(key_points)}\n\n"
                    f"Original Content: {item.content[:ARTICLE_INPUT_CHARS]}"
                ),
                temperature=0.7,
                max_tokens=1000,
            )
        except Exception as e:
            await self._degraded("full_content", item, e, degraded)
            return item.content

    async def _degraded(self, stage: str, item: RawItem, error, degraded: List[str]):
        degraded.append(stage)
        await self.events.emit(
            EventType.STAGE_DEGRADED,
            stage=stage,
            url=item.url,
            error=str(error)
        )
