"""Redis client for commission event pub/sub.

Redis is optional: with no ``REDIS_URL`` configured the pool stays unset and
committed transitions are simply not broadcast.
"""

import redis.asyncio as redis
import structlog

from artmarket.core.config import get_settings

logger = structlog.get_logger(__name__)

_redis: redis.Redis | None = None


async def init_redis(url: str | None = None) -> None:
    """Connect the event pool, or leave it disabled when no URL is configured."""
    global _redis

    if _redis is not None:
        return

    redis_url = url or get_settings().redis_url
    if not redis_url:
        logger.info("redis_disabled", reason="no_redis_url")
        return

    client = redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
    await client.ping()
    _redis = client
    logger.info("redis_initialized")


async def close_redis() -> None:
    global _redis

    if _redis is not None:
        await _redis.aclose()
        _redis = None


def redis_enabled() -> bool:
    return _redis is not None


def get_redis() -> redis.Redis:
    """Return the event pool client.

    Raises RuntimeError when Redis is disabled or not yet connected.
    """
    if _redis is None:
        raise RuntimeError("Redis is not connected; commission events are disabled.")
    return _redis
