"""
Tests for the Redis-backed competitor cache: app.services.competitor_cache
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from app.services.competitor_cache import (
    STATS_HITS_KEY,
    STATS_MISSES_KEY,
    CompetitorCache,
)
from tests.conftest import make_collected

URL = "https://twitter.com/acme"
OPTIONS = {"max_posts": 50, "time_period_days": 30}


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> Clock:
    return Clock(datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def cache(fake_redis, clock) -> CompetitorCache:
    return CompetitorCache(fake_redis, freshness_window=timedelta(hours=24), clock=clock)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def test_key_is_deterministic(cache):
    assert cache.generate_key(URL, OPTIONS) == cache.generate_key(URL, dict(OPTIONS))


def test_key_normalizes_url(cache):
    assert cache.generate_key(URL, OPTIONS) == cache.generate_key(" HTTPS://Twitter.com/acme/ ", OPTIONS)


def test_key_is_shared_by_spellings_of_one_profile(cache):
    assert cache.generate_key(URL, OPTIONS) == cache.generate_key("https://x.com/ACME", OPTIONS)
    assert cache.generate_key(URL, OPTIONS) == cache.generate_key("https://mobile.twitter.com/acme?lang=en", OPTIONS)


def test_key_keeps_youtube_channel_id_case(cache):
    first = cache.generate_key("https://www.youtube.com/channel/UCabcDEF", OPTIONS)
    second = cache.generate_key("https://www.youtube.com/channel/UCABCdef", OPTIONS)
    assert first != second
    assert first == cache.generate_key("https://YouTube.com/channel/UCabcDEF/", OPTIONS)


@pytest.mark.asyncio
async def test_youtube_channels_differing_in_case_do_not_share_entries(cache):
    stored = "https://www.youtube.com/channel/UCabcDEF"
    await cache.set(stored, make_collected(stored, platform="youtube"), OPTIONS)

    assert await cache.get("https://www.youtube.com/channel/UCABCdef", OPTIONS) is None
    assert await cache.get(stored, OPTIONS) is not None


def test_key_includes_options(cache):
    key = cache.generate_key(URL, OPTIONS)
    assert key.startswith("competitor:")
    assert key.endswith(":50:30")
    assert key != cache.generate_key(URL, {"max_posts": 20, "time_period_days": 30})


# ---------------------------------------------------------------------------
# Get / set
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_round_trip_is_deep_equal(cache, fake_redis):
    data = make_collected(URL)
    assert await cache.set(URL, data, OPTIONS) is True

    assert await cache.get(URL, OPTIONS) == data
    assert fake_redis.ttls[cache.generate_key(URL, OPTIONS)] == 24 * 3600


@pytest.mark.asyncio
async def test_fresh_just_inside_window(cache, clock):
    await cache.set(URL, make_collected(URL), OPTIONS)
    clock.advance(hours=23, minutes=59)
    assert await cache.get(URL, OPTIONS) is not None


@pytest.mark.asyncio
async def test_stale_entry_is_a_miss_and_deleted(cache, clock):
    await cache.set(URL, make_collected(URL), OPTIONS)
    clock.advance(hours=24, minutes=1)

    assert await cache.get(URL, OPTIONS) is None
    assert await cache.exists(URL, OPTIONS) is False


@pytest.mark.asyncio
async def test_malformed_entry_is_a_miss_and_deleted(cache, fake_redis):
    key = cache.generate_key(URL, OPTIONS)
    fake_redis.store[key] = "{not json"

    assert await cache.get(URL, OPTIONS) is None
    assert key not in fake_redis.store


@pytest.mark.asyncio
async def test_entry_without_payload_is_malformed(cache, fake_redis):
    key = cache.generate_key(URL, OPTIONS)
    fake_redis.store[key] = json.dumps({"cached_at": "2026-10-18T12:00:00+00:00"})
    assert await cache.get(URL, OPTIONS) is None


@pytest.mark.asyncio
async def test_custom_ttl(cache, fake_redis):
    await cache.set(URL, make_collected(URL), OPTIONS, ttl_seconds=60)
    assert fake_redis.ttls[cache.generate_key(URL, OPTIONS)] == 60


@pytest.mark.asyncio
async def test_delete(cache):
    await cache.set(URL, make_collected(URL), OPTIONS)
    assert await cache.delete(URL, OPTIONS) is True
    assert await cache.delete(URL, OPTIONS) is False


# ---------------------------------------------------------------------------
# Batch operations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_multiple_partitions_hits_and_misses(cache, clock):
    urls = ["https://twitter.com/a", "https://twitter.com/b", "https://twitter.com/c"]
    await cache.set(urls[0], make_collected(urls[0]), OPTIONS)
    clock.advance(hours=25)
    await cache.set(urls[2], make_collected(urls[2]), OPTIONS)

    lookup = await cache.get_multiple(urls, OPTIONS)

    assert lookup["hits"] == [urls[2]]
    assert lookup["misses"] == [urls[0], urls[1]]
    assert list(lookup["results"]) == [urls[2]]
    # Stale entry removed on detection
    assert await cache.exists(urls[0], OPTIONS) is False


@pytest.mark.asyncio
async def test_set_multiple_then_get_multiple(cache):
    data = {u: make_collected(u) for u in ("https://x.com/a", "https://x.com/b")}
    assert await cache.set_multiple(data, OPTIONS) is True

    lookup = await cache.get_multiple(list(data), OPTIONS)
    assert lookup["results"] == data
    assert lookup["misses"] == []


@pytest.mark.asyncio
async def test_get_multiple_empty(cache):
    assert await cache.get_multiple([], OPTIONS) == {"results": {}, "hits": [], "misses": []}


# ---------------------------------------------------------------------------
# Stats / maintenance
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_stats_counts_hits_and_misses(cache, fake_redis):
    await cache.set(URL, make_collected(URL), OPTIONS)
    await cache.get(URL, OPTIONS)
    await cache.get("https://twitter.com/other", OPTIONS)
    await cache.get_multiple([URL, "https://twitter.com/third"], OPTIONS)

    stats = await cache.stats()
    assert stats["available"] is True
    assert stats["total_entries"] == 1
    assert stats["hits"] == 2
    assert stats["misses"] == 2
    assert stats["hit_rate"] == 50.0
    assert stats["freshness_window_hours"] == 24


@pytest.mark.asyncio
async def test_cleanup_removes_only_stale(cache, clock, fake_redis):
    await cache.set("https://twitter.com/old", make_collected("https://twitter.com/old"), OPTIONS)
    clock.advance(hours=25)
    await cache.set(URL, make_collected(URL), OPTIONS)

    assert await cache.cleanup() == 1
    assert await cache.exists(URL, OPTIONS) is True


@pytest.mark.asyncio
async def test_clear_removes_entries_and_counters(cache, fake_redis):
    await cache.set(URL, make_collected(URL), OPTIONS)
    await cache.get(URL, OPTIONS)

    assert await cache.clear() == 1
    assert await cache.exists(URL, OPTIONS) is False
    assert STATS_HITS_KEY not in fake_redis.store
    assert STATS_MISSES_KEY not in fake_redis.store


# ---------------------------------------------------------------------------
# Store unavailable
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unavailable_store_fails_open(cache, fake_redis):
    fake_redis.fail = True

    assert await cache.get(URL, OPTIONS) is None
    assert await cache.set(URL, make_collected(URL), OPTIONS) is False
    assert await cache.set_multiple({URL: make_collected(URL)}, OPTIONS) is False
    assert await cache.get_multiple([URL], OPTIONS) == {"results": {}, "hits": [], "misses": [URL]}
    assert await cache.stats() == {"available": False}
    assert await cache.cleanup() == 0
