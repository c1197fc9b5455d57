"""Redis cache of per-competitor collection results.

Entries are keyed by the profile identity (see ``normalize_url``) and the collection options that shape
the sample (``max_posts``, ``time_period_days``). Freshness is checked on
every read; the Redis TTL is only a backstop for keys that are never read
again.
"""

import hashlib
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable
from urllib.parse import urlsplit, urlunsplit

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import get_settings
from app.exceptions import InvalidProfileUrlError, UnsupportedPlatformError
from app.scraping.url_parser import parse_profile_url

logger = logging.getLogger(__name__)
settings = get_settings()

KEY_PREFIX = "competitor:"
STATS_HITS_KEY = "competitor_cache_stats:hits"
STATS_MISSES_KEY = "competitor_cache_stats:misses"

# YouTube is absent: channel ids are case-sensitive
CASE_INSENSITIVE_PLATFORMS = ("twitter", "instagram", "linkedin", "facebook")

# Store failures are logged and the cache behaves as empty
CACHE_ERRORS = (RedisError, OSError)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_url(url: str) -> str:
    """Canonical profile identity used for cache keys and request de-duplication.

    Supported profiles reduce to ``platform:type:username``. Usernames are
    case-folded only where the platform ignores case; YouTube channel ids and
    custom names keep their case. Unparseable URLs fall back to the URL with
    a lower-cased scheme and host and no trailing slash.
    """
    try:
        profile = parse_profile_url(url)
    except (InvalidProfileUrlError, UnsupportedPlatformError):
        parts = urlsplit(url.strip())
        return urlunsplit(
            (parts.scheme.lower(), parts.netloc.lower(), parts.path.rstrip("/"), parts.query, "")
        )

    username = profile["username"]
    if profile["platform"] in CASE_INSENSITIVE_PLATFORMS or profile["type"] == "handle":
        username = username.lower()
    return f"{profile['platform']}:{profile['type'] or ''}:{username}"


def normalize_options(options: dict | None) -> dict:
    options = options or {}
    return {
        "max_posts": int(options.get("max_posts") or settings.default_max_posts),
        "time_period_days": int(options.get("time_period_days") or settings.default_time_period_days),
    }


class CompetitorCache:
    def __init__(
        self,
        redis_client: redis.Redis,
        freshness_window: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.redis = redis_client
        self.freshness_window = freshness_window or timedelta(hours=settings.competitor_cache_ttl_hours)
        self.clock = clock

    @property
    def ttl_seconds(self) -> int:
        return int(self.freshness_window.total_seconds())

    def generate_key(self, url: str, options: dict | None = None) -> str:
        opts = normalize_options(options)
        digest = hashlib.sha256(normalize_url(url).encode("utf-8")).hexdigest()[:32]
        return f"{KEY_PREFIX}{digest}:{opts['max_posts']}:{opts['time_period_days']}"

    def _decode(self, raw: str | bytes | None) -> dict | None:
        """Return the stored entry if it is well formed and fresh, else None."""
        if raw is None:
            return None
        try:
            entry = json.loads(raw)
            cached_at = datetime.fromisoformat(entry["cached_at"])
            entry["competitor_data"]
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Discarding malformed competitor cache entry: %s", e)
            return None
        if cached_at.tzinfo is None:
            cached_at = cached_at.replace(tzinfo=timezone.utc)
        if self.clock() - cached_at >= self.freshness_window:
            return None
        return entry

    async def _record(self, hits: int, misses: int) -> None:
        try:
            pipe = self.redis.pipeline(transaction=False)
            if hits:
                pipe.incrby(STATS_HITS_KEY, hits)
            if misses:
                pipe.incrby(STATS_MISSES_KEY, misses)
            await pipe.execute()
        except CACHE_ERRORS as e:
            logger.warning("Could not update competitor cache stats: %s", e)

    async def get(self, url: str, options: dict | None = None) -> dict | None:
        key = self.generate_key(url, options)
        try:
            raw = await self.redis.get(key)
            entry = self._decode(raw)
            if raw is not None and entry is None:
                # Stale or malformed
                await self.redis.delete(key)
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on get(%s): %s", url, e)
            return None

        await self._record(hits=1 if entry else 0, misses=0 if entry else 1)
        return entry["competitor_data"] if entry else None

    async def set(self, url: str, data: dict, options: dict | None = None, ttl_seconds: int | None = None) -> bool:
        key = self.generate_key(url, options)
        entry = {
            "competitor_data": data,
            "cached_at": self.clock().isoformat(),
            "profile_url": url,
            "options": normalize_options(options),
        }
        try:
            await self.redis.setex(key, ttl_seconds or self.ttl_seconds, json.dumps(entry, default=str))
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on set(%s): %s", url, e)
            return False
        return True

    async def get_multiple(self, urls: list[str], options: dict | None = None) -> dict:
        """
        Batch lookup with a single MGET.

        Returns {"results": {url: data}, "hits": [urls], "misses": [urls]}
        with hits and misses in input order.
        """
        if not urls:
            return {"results": {}, "hits": [], "misses": []}

        keys = [self.generate_key(u, options) for u in urls]
        try:
            raws = await self.redis.mget(keys)
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on get_multiple: %s", e)
            return {"results": {}, "hits": [], "misses": list(urls)}

        results: dict[str, dict] = {}
        hits: list[str] = []
        misses: list[str] = []
        discard: list[str] = []
        for url, key, raw in zip(urls, keys, raws):
            entry = self._decode(raw)
            if entry is None:
                misses.append(url)
                if raw is not None:
                    discard.append(key)
            else:
                results[url] = entry["competitor_data"]
                hits.append(url)

        if discard:
            try:
                await self.redis.delete(*discard)
            except CACHE_ERRORS as e:
                logger.warning("Could not delete %d stale competitor cache entries: %s", len(discard), e)

        await self._record(hits=len(hits), misses=len(misses))
        logger.info("Competitor cache lookup: %d hits, %d misses", len(hits), len(misses))
        return {"results": results, "hits": hits, "misses": misses}

    async def set_multiple(self, data_by_url: dict[str, dict], options: dict | None = None) -> bool:
        """Write several entries in one non-transactional pipeline. Best effort."""
        if not data_by_url:
            return True
        cached_at = self.clock().isoformat()
        opts = normalize_options(options)
        try:
            pipe = self.redis.pipeline(transaction=False)
            for url, data in data_by_url.items():
                entry = {
                    "competitor_data": data,
                    "cached_at": cached_at,
                    "profile_url": url,
                    "options": opts,
                }
                pipe.setex(self.generate_key(url, options), self.ttl_seconds, json.dumps(entry, default=str))
            await pipe.execute()
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on set_multiple: %s", e)
            return False
        return True

    async def exists(self, url: str, options: dict | None = None) -> bool:
        try:
            return bool(await self.redis.exists(self.generate_key(url, options)))
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on exists(%s): %s", url, e)
            return False

    async def delete(self, url: str, options: dict | None = None) -> bool:
        try:
            return bool(await self.redis.delete(self.generate_key(url, options)))
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on delete(%s): %s", url, e)
            return False

    async def _keys(self) -> list[str]:
        return [k async for k in self.redis.scan_iter(match=f"{KEY_PREFIX}*", count=500)]

    async def stats(self) -> dict:
        try:
            keys = await self._keys()
            hits, misses = await self.redis.mget([STATS_HITS_KEY, STATS_MISSES_KEY])
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on stats: %s", e)
            return {"available": False}

        hits, misses = int(hits or 0), int(misses or 0)
        lookups = hits + misses
        return {
            "available": True,
            "total_entries": len(keys),
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / lookups * 100, 1) if lookups else 0.0,
            "freshness_window_hours": self.freshness_window.total_seconds() / 3600,
        }

    async def cleanup(self) -> int:
        """Delete stale and malformed entries. Returns the number removed."""
        try:
            keys = await self._keys()
            if not keys:
                return 0
            raws = await self.redis.mget(keys)
            stale = [k for k, raw in zip(keys, raws) if raw is not None and self._decode(raw) is None]
            if stale:
                await self.redis.delete(*stale)
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on cleanup: %s", e)
            return 0
        logger.info("Competitor cache cleanup removed %d of %d entries", len(stale), len(keys))
        return len(stale)

    async def clear(self) -> int:
        """Delete every competitor entry and reset the hit/miss counters."""
        try:
            keys = await self._keys()
            if keys:
                await self.redis.delete(*keys)
            await self.redis.delete(STATS_HITS_KEY, STATS_MISSES_KEY)
        except CACHE_ERRORS as e:
            logger.warning("Competitor cache unavailable on clear: %s", e)
            return 0
        logger.info("Competitor cache cleared: %d entries", len(keys))
        return len(keys)


_redis_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Process-wide async Redis client shared by the cache and rate limiter."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
