"""Commission event publishing over Redis Pub/Sub.

Published to commission:{id}:events so open commission pages can refresh.
Flat envelope with a 'type' discriminator.
"""

import json
from datetime import UTC, datetime

from redis.asyncio import Redis


def channel_for(commission_id: str) -> str:
    return f"commission:{commission_id}:events"


class CommissionEventPublisher:
    """Publishes committed commission transitions."""

    def __init__(self, redis: Redis):
        self.redis = redis

    async def publish(self, commission_id: str, event: dict) -> None:
        """Publish a typed event to the commission's channel.

        Args:
            commission_id: Commission identifier
            event: Dict with 'type' field and event-specific data.
                   Timestamp is added automatically if not present.
        """
        if "timestamp" not in event:
            event["timestamp"] = datetime.now(UTC).isoformat()
        event["commission_id"] = commission_id
        await self.redis.publish(channel_for(commission_id), json.dumps(event))
