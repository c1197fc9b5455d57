from abc import ABC, abstractmethod

import httpx

from app.config import get_settings
from app.exceptions import PlatformAPIError, PlatformNotConfiguredError, PlatformTimeoutError
from app.scraping.rate_limiter import RateLimiter

settings = get_settings()


class AbstractSocialClient(ABC):
    """Base class for all social media platform API clients.

    Clients return data already normalized by their platform mapper: one
    profile dict and a list of post dicts in the common shape (see
    ``app.scraping.mappers.base``). Upstream failures are raised as typed
    PlatformError subclasses, never swallowed.
    """

    platform: str = ""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        # Only consulted for extra per-item calls made inside one fetch
        self.rate_limiter = rate_limiter
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.platform_request_timeout, connect=10.0),
            transport=transport,
        )

    async def close(self):
        await self.client.aclose()

    async def _throttle(self) -> None:
        if self.rate_limiter is not None:
            await self.rate_limiter.wait_for_platform(self.platform)

    def _require(self, value: str, setting: str) -> str:
        if not value:
            raise PlatformNotConfiguredError(self.platform, setting)
        return value

    async def _get_json(self, url: str, params: dict | None = None, headers: dict | None = None) -> dict:
        """GET ``url`` and return the decoded body, mapping transport errors to PlatformErrors."""
        try:
            response = await self.client.get(url, params=params, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise PlatformTimeoutError(self.platform, detail=str(e)) from e
        except httpx.HTTPStatusError as e:
            raise PlatformAPIError(
                self.platform, e.response.status_code, detail=e.response.text[:500]
            ) from e
        except httpx.HTTPError as e:
            raise PlatformAPIError(self.platform, 503, detail=str(e)) from e
        return response.json()

    def posts_identifier(self, profile: dict, identifier: str) -> str:
        """Identifier to pass to ``fetch_recent_posts`` once the profile is known."""
        return profile.get("id") or identifier

    @abstractmethod
    async def fetch_profile(self, identifier: str, profile_type: str | None = None) -> dict:
        """Fetch and normalize the public profile for a username/handle/id."""
        pass

    @abstractmethod
    async def fetch_recent_posts(self, identifier: str, max_results: int = 50) -> list[dict]:
        """Fetch and normalize up to ``max_results`` most recent posts.

        ``identifier`` is the platform id returned in ``fetch_profile()["id"]``.
        """
        pass
