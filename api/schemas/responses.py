"""Response schemas for API endpoints."""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from aggregator.models import SourceKind


class TriggerResponse(BaseModel):
    """Acknowledgement for a manual aggregation trigger."""
    success: bool = Field(default=True)
    message: str = Field(default="News aggregation triggered successfully")


class RunStatusResponse(BaseModel):
    """Response schema for an aggregation run."""
    run_id: str = Field(..., description="Unique run identifier")
    trigger: str = Field(..., description="What started the run")
    status: str = Field(..., description="Current run status")
    sources_processed: int = Field(..., description="Sources fully processed")
    items_fetched: int = Field(..., description="Candidate items returned by fetchers")
    items_skipped: int = Field(..., description="Items already ingested or missing reference data")
    articles_created: int = Field(..., description="Articles published")
    items_failed: int = Field(..., description="Items that failed to commit")
    degraded_stages: int = Field(..., description="Enrichment stages that used a fallback")
    error_message: Optional[str] = Field(None, description="Run-level failure")
    started_at: datetime = Field(..., description="Run start timestamp")
    completed_at: Optional[datetime] = Field(None, description="Run end timestamp")

    @classmethod
    def from_record(cls, run: dict) -> "RunStatusResponse":
        return cls(
            run_id=run["_id"],
            trigger=run["trigger"],
            status=run["status"],
            sources_processed=run["sources_processed"],
            items_fetched=run["items_fetched"],
            items_skipped=run["items_skipped"],
            articles_created=run["articles_created"],
            items_failed=run["items_failed"],
            degraded_stages=run["degraded_stages"],
            error_message=run.get("error_message"),
            started_at=run["started_at"],
            completed_at=run.get("completed_at")
        )


class SourceResponse(BaseModel):
    """Response schema for a news source."""
    id: str
    name: str
    url: str
    feed_url: Optional[str] = None
    kind: SourceKind
    is_active: bool
    last_fetched_at: Optional[datetime] = None
    logo_url: Optional[str] = None


class SourceListResponse(BaseModel):
    success: bool = Field(default=True)
    data: List[SourceResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
