"""Collects profile, content and engagement data for a list of competitor URLs.

Profiles are collected in fixed-size batches with a pause between batches to
stay friendly with upstream APIs. A failure on one profile never affects
its siblings: ``collect_one`` always returns a result dict, either the
success shape or ``{profile_url, error, error_type, collected_at}``.
"""

import asyncio
import logging
from datetime import datetime, timezone

from app.config import get_settings
from app.exceptions import CompetitorAnalysisError, UnsupportedPlatformError
from app.scraping.clients import AbstractSocialClient, get_platform_client
from app.scraping.rate_limiter import RateLimiter
from app.scraping.url_parser import parse_profile_url
from app.services.competitor_cache import normalize_options
from app.services.content_analyzer import analyze_content, calculate_engagement, filter_recent_posts
from app.services.data_quality import assess_data_quality

logger = logging.getLogger(__name__)
settings = get_settings()


def is_failed_result(result: dict) -> bool:
    return "error" in result and "profile" not in result


def failed_result(profile_url: str, error: Exception) -> dict:
    return {
        "profile_url": profile_url,
        "error": str(error),
        "error_type": type(error).__name__,
        "collected_at": datetime.now(timezone.utc).isoformat(),
    }


class CompetitorDataCollector:
    def __init__(
        self,
        clients: dict[str, AbstractSocialClient] | None = None,
        rate_limiter: RateLimiter | None = None,
        concurrency: int | None = None,
        batch_delay: float | None = None,
    ):
        # Clients created lazily are owned (and closed) by the collector
        self.clients: dict[str, AbstractSocialClient] = dict(clients or {})
        self._owned: set[str] = set()
        self.rate_limiter = rate_limiter
        for client in self.clients.values():
            if isinstance(client, AbstractSocialClient) and client.rate_limiter is None:
                client.rate_limiter = rate_limiter
        self.concurrency = concurrency or settings.collector_concurrency
        self.batch_delay = settings.collector_batch_delay_seconds if batch_delay is None else batch_delay

    def _client(self, platform: str) -> AbstractSocialClient:
        if platform not in self.clients:
            self.clients[platform] = get_platform_client(platform, rate_limiter=self.rate_limiter)
            self._owned.add(platform)
        return self.clients[platform]

    async def _throttle(self, platform: str) -> None:
        if self.rate_limiter is not None:
            await self.rate_limiter.wait_for_platform(platform)

    async def close(self):
        for platform in list(self._owned):
            await self.clients.pop(platform).close()
        self._owned.clear()

    async def collect_one(self, profile_url: str, options: dict | None = None) -> dict:
        opts = normalize_options(options)
        try:
            parsed = parse_profile_url(profile_url)
            platform = parsed["platform"]
            client = self._client(platform)

            await self._throttle(platform)
            profile = await client.fetch_profile(parsed["username"], parsed["type"])

            await self._throttle(platform)
            raw_posts = await client.fetch_recent_posts(
                client.posts_identifier(profile, parsed["username"]),
                max_results=opts["max_posts"],
            )

            posts = filter_recent_posts(raw_posts, opts["time_period_days"], max_posts=opts["max_posts"])
            content = analyze_content(posts, platform, opts["time_period_days"])
            engagement = calculate_engagement(posts, profile.get("followers") or 0)
            data_quality = assess_data_quality(profile, content, engagement)
        except CompetitorAnalysisError as e:
            level = logging.INFO if isinstance(e, UnsupportedPlatformError) else logging.WARNING
            logger.log(level, "Collection failed for %s: %s", profile_url, e)
            return failed_result(profile_url, e)
        except Exception as e:
            logger.error("Unexpected error collecting %s", profile_url, exc_info=True)
            return failed_result(profile_url, e)

        return {
            "profile_url": profile_url,
            "profile": {
                **profile,
                "platform": platform,
                "username": profile.get("username") or parsed["username"],
                "profile_url": profile_url,
                "type": parsed["type"],
            },
            "content": content,
            "engagement": engagement,
            "data_quality": data_quality,
            "collected_at": datetime.now(timezone.utc).isoformat(),
        }

    async def collect_multiple(self, profile_urls: list[str], options: dict | None = None) -> list[dict]:
        """Collect every URL, ``concurrency`` at a time; results follow input order."""
        results: list[dict] = []
        batches = [
            profile_urls[i:i + self.concurrency]
            for i in range(0, len(profile_urls), self.concurrency)
        ]
        for index, batch in enumerate(batches):
            batch_results = await asyncio.gather(*[self.collect_one(url, options) for url in batch])
            results.extend(batch_results)
            if index < len(batches) - 1 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        failed = sum(1 for r in results if is_failed_result(r))
        logger.info(
            "Collected %d competitor profiles (%d succeeded, %d failed)",
            len(results), len(results) - failed, failed,
        )
        return results
