"""Request schemas for API endpoints."""
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class SourceUpdateRequest(BaseModel):
    """Request schema for a partial news source update."""
    name: Optional[str] = Field(None, min_length=1, description="Display name")
    url: Optional[str] = Field(None, description="Homepage or listing page")
    feed_url: Optional[str] = Field(None, description="RSS/Atom feed; an empty string removes it")
    logo_url: Optional[str] = Field(None, description="Logo image")
    is_active: Optional[bool] = Field(None, description="Whether the source is polled by the pipeline")

    @model_validator(mode="after")
    def check_not_empty(self):
        """At least one field must be provided."""
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        return self

    def changes(self) -> dict:
        """Only the fields the client sent."""
        return self.model_dump(exclude_unset=True)
