"""Shared configuration for the aggregator and admin API."""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "ai_news_hub"

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_event_channel: str = "aggregation_events"
    run_lock_key: str = "aggregation:run_lock"
    run_lock_ttl: int = 7200  # seconds

    # Language Model Configuration
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-3.5-turbo"

    # Fetcher Configuration
    fetch_timeout: int = 10
    user_agent: str = "Mozilla/5.0 (compatible; AI-News-Aggregator/1.0)"
    feed_max_items: int = 10
    scrape_max_items: int = 5
    content_max_chars: int = 5000

    # Scheduler Configuration
    aggregation_interval_hours: int = 4
    cleanup_hour: int = 2
    cleanup_retention_hours: int = 24
    run_retention_days: int = 30
    scheduler_enabled: bool = False

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
