"""Tests for the optional Redis event pool."""

import fakeredis.aioredis
import pytest

import artmarket.db.redis as redis_pool
from artmarket.api.routes.commissions import get_event_publisher
from artmarket.core.config import Settings
from artmarket.services.event_publisher import CommissionEventPublisher

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def reset_pool(monkeypatch):
    monkeypatch.setattr(redis_pool, "_redis", None)


@pytest.fixture
def fake_from_url(monkeypatch):
    """Replace redis.from_url with an in-memory client and record the URL."""
    urls = []

    def _from_url(url, **kwargs):
        urls.append(url)
        return fakeredis.aioredis.FakeRedis(decode_responses=True)

    monkeypatch.setattr(redis_pool.redis, "from_url", _from_url)
    return urls


async def test_no_url_leaves_events_disabled(monkeypatch, fake_from_url):
    monkeypatch.setattr(redis_pool, "get_settings", lambda: Settings(redis_url=""))

    await redis_pool.init_redis()

    assert fake_from_url == []
    assert redis_pool.redis_enabled() is False
    assert get_event_publisher() is None
    with pytest.raises(RuntimeError):
        redis_pool.get_redis()


async def test_connects_and_closes(fake_from_url):
    await redis_pool.init_redis("redis://cache:6379/0")

    assert fake_from_url == ["redis://cache:6379/0"]
    assert redis_pool.redis_enabled() is True
    assert isinstance(get_event_publisher(), CommissionEventPublisher)

    await redis_pool.close_redis()

    assert redis_pool.redis_enabled() is False
    assert get_event_publisher() is None


async def test_second_init_keeps_existing_client(fake_from_url):
    await redis_pool.init_redis("redis://cache:6379/0")
    client = redis_pool.get_redis()

    await redis_pool.init_redis("redis://other:6379/0")

    assert redis_pool.get_redis() is client
    assert fake_from_url == ["redis://cache:6379/0"]
    await redis_pool.close_redis()
