import asyncio
import logging
import time
import uuid

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class RateLimiter:
    """Redis-based sliding window rate limiter."""

    def __init__(self, redis_url: str | None = None, redis_client: redis.Redis | None = None):
        self.redis_url = redis_url or settings.redis_url
        self._redis: redis.Redis | None = redis_client

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url, decode_responses=True)
        return self._redis

    async def acquire(
        self,
        key: str,
        max_requests: int,
        window_seconds: int = 1,
    ) -> bool:
        """
        Try to acquire a rate limit slot.
        Returns True if allowed, False if rate limited.
        """
        r = await self._get_redis()
        now = time.time()
        window_start = now - window_seconds

        member = f"{now}:{uuid.uuid4().hex[:8]}"

        pipe = r.pipeline()
        # Remove old entries
        pipe.zremrangebyscore(key, 0, window_start)
        # Count current entries
        pipe.zcard(key)
        # Add current request
        pipe.zadd(key, {member: now})
        # Set expiry
        pipe.expire(key, window_seconds + 1)
        results = await pipe.execute()

        current_count = results[1]
        if current_count < max_requests:
            return True
        # Denied attempts must not occupy the window
        await r.zrem(key, member)
        return False

    async def wait_for_slot(
        self,
        key: str,
        max_requests: int,
        window_seconds: int = 1,
        max_wait: float = 30.0,
    ) -> bool:
        """Wait until a rate limit slot is available."""
        start = time.time()
        while time.time() - start < max_wait:
            if await self.acquire(key, max_requests, window_seconds):
                return True
            await asyncio.sleep(0.1)
        return False

    async def wait_for_platform(self, platform: str, max_wait: float = 30.0) -> bool:
        """
        Wait for a slot in the shared per-platform window before an upstream call.

        Fails open: when Redis is unreachable the call proceeds unthrottled.
        A wait that times out also proceeds, and the upstream 429 (if any)
        is reported as a PlatformAPIError for that profile.
        """
        try:
            allowed = await self.wait_for_slot(
                f"platform_api:{platform}",
                settings.platform_rate_limit_per_second,
                window_seconds=1,
                max_wait=max_wait,
            )
        except (RedisError, OSError) as e:
            logger.warning("Rate limiter unavailable for %s, proceeding unthrottled: %s", platform, e)
            return True
        if not allowed:
            logger.warning("Rate limit wait timed out for %s after %.1fs", platform, max_wait)
        return allowed

    async def close(self):
        if self._redis:
            await self._redis.close()
