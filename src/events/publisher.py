"""Event publisher for Redis Streams."""

import json
import uuid
from datetime import datetime, timezone
from typing import Any

import redis

from src.events.client import RedisClient
from src.logger.logger import get_logger
from src.logger.types import Category, param

CONFIG_SAVED = "config_saved"


class EventPublisher:
    """
    Event publisher writing to a Redis Stream with XADD.

    Message layout matches what stream consumers parse:
    event_id, event_type, timestamp and a JSON-encoded data field.
    """

    def __init__(self, redis_client: RedisClient, stream: str) -> None:
        """
        Initialize EventPublisher.

        Args:
            redis_client: Connected Redis client
            stream: Stream name (e.g., "config-updates")
        """
        self.redis_client = redis_client
        self.stream = stream
        self.logger = get_logger().with_category(Category.MESSENGER)

    def publish(self, event_type: str, data: dict[str, Any] | None = None) -> str | None:
        """
        Publish one event, fire and forget.

        Failures are logged and not raised.

        Returns:
            Stream message ID, or None if publishing failed
        """
        event_id = str(uuid.uuid4())
        message = {
            "event_id": event_id,
            "event_type": event_type,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "data": json.dumps(data or {}),
        }

        try:
            message_id = self.redis_client.get_redis().xadd(self.stream, message)
        except (redis.RedisError, RuntimeError) as e:
            self.logger.error(
                f"Failed to publish event: {event_type}",
                e,
                param("stream", self.stream),
                param("event_id", event_id),
            )
            return None

        self.logger.debug(
            f"Event published: {event_type}",
            param("stream", self.stream),
            param("event_id", event_id),
            param("message_id", message_id),
        )
        return message_id


class ConfigEventPublisher:
    """Change notifier announcing that configuration was saved."""

    def __init__(self, publisher: EventPublisher) -> None:
        self.publisher = publisher

    def publish_config_saved(self) -> None:
        """Publish a payload-less config_saved event."""
        self.publisher.publish(CONFIG_SAVED)
