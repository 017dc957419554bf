"""Structured pipeline events, logged and published on a Redis channel."""
import json
import logging
from typing import Any, Dict, Optional
import redis.asyncio as redis
from redis.exceptions import RedisError
from shared.config import settings
from shared.utils import get_utc_now

logger = logging.getLogger(__name__)


class EventType:
    """Pipeline event type constants."""
    RUN_STARTED = "run_started"
    RUN_SKIPPED = "run_skipped"
    RUN_COMPLETED = "run_completed"
    RUN_FAILED = "run_failed"
    SOURCE_COMPLETED = "source_completed"
    ARTICLE_CREATED = "article_created"
    ITEM_SKIPPED = "item_skipped"
    ITEM_FAILED = "item_failed"
    STAGE_DEGRADED = "stage_degraded"


_LEVELS = {
    EventType.RUN_FAILED: logging.ERROR,
    EventType.ITEM_FAILED: logging.ERROR,
    EventType.STAGE_DEGRADED: logging.WARNING,
    EventType.ITEM_SKIPPED: logging.WARNING,
    EventType.RUN_SKIPPED: logging.WARNING,
}


class EventPublisher:
    """
    Emits pipeline events.

    Every event is written to the log. When a Redis client is configured the
    event is also published as JSON so operators can tell degraded enrichment
    apart from normal operation without parsing log text.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None, channel: str = None):
        self.redis = redis_client
        self.channel = channel or settings.redis_event_channel

    async def emit(self, event_type: str, **fields: Any) -> Dict[str, Any]:
        """Log and publish one event. Returns the event payload."""
        event = {
            "type": event_type,
            "timestamp": get_utc_now().isoformat(),
            **fields
        }

        level = _LEVELS.get(event_type, logging.INFO)
        logger.log(level, f"{event_type}: {json.dumps(fields, default=str)}")

        if self.redis is not None:
            try:
                await self.redis.publish(self.channel, json.dumps(event, default=str))
            except RedisError as e:
                logger.warning(f"Failed to publish {event_type} event: {e}")

        return event
