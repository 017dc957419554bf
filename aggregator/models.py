"""Domain model definitions for the aggregation pipeline."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator


class SourceKind(str, Enum):
    """Ingestion strategy for a news source."""
    FEED = "feed"
    SCRAPE = "scrape"


class CategorySlug(str, Enum):
    """Stable category identifiers the pipeline classifies into."""
    RESEARCH = "research"
    ETHICS_POLICY = "ethics-policy"
    AI_INDUSTRY = "ai-industry"
    APPLICATIONS = "applications"
    MACHINE_LEARNING = "machine-learning"


class RunTrigger(str, Enum):
    """What started an aggregation run."""
    SCHEDULED = "scheduled"
    MANUAL = "manual"


class RunStatusEnum(str, Enum):
    """Aggregation run status enumeration."""
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class Source(BaseModel):
    """A configured external news source."""
    id: str = Field(alias="_id")
    name: str
    url: str
    feed_url: Optional[str] = None
    kind: SourceKind
    is_active: bool = True
    last_fetched_at: Optional[datetime] = None
    logo_url: Optional[str] = None

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_feed_url(self):
        """Feed sources must carry the feed they are read from."""
        if self.kind == SourceKind.FEED and not self.feed_url:
            raise ValueError("feed sources require a feed_url")
        return self


class Author(BaseModel):
    """AI author reference data."""
    id: str = Field(alias="_id")
    name: str
    bio: str = ""
    avatar: Optional[str] = None
    specialization: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class Category(BaseModel):
    """Article category reference data."""
    id: str = Field(alias="_id")
    name: str
    slug: CategorySlug
    description: str = ""
    color: Optional[str] = None

    class Config:
        populate_by_name = True


@dataclass
class RawItem:
    """A candidate article as produced by a fetcher."""
    title: str
    url: str
    content: str
    published_at: datetime


@dataclass
class EnrichedArticle:
    """A raw item after every enrichment stage has run."""
    item: RawItem
    source: Source
    category: Category
    author: Author
    summary: str
    key_points: List[str]
    tags: List[str]
    content: str
    slug: str
    read_time: int
    ai_model: str
    degraded_stages: List[str] = field(default_factory=list)
