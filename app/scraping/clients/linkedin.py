import asyncio
from urllib.parse import quote

import httpx

from app.config import get_settings
from app.exceptions import PlatformAPIError, PlatformError, ProfileNotFoundError
from app.scraping.clients.base import AbstractSocialClient
from app.scraping.mappers.linkedin_mapper import LinkedInMapper

settings = get_settings()


class LinkedInClient(AbstractSocialClient):
    """
    Client for the LinkedIn Marketing (versioned REST) API.

    Only company pages are readable; member profiles require the member's own
    consent and are rejected with a PlatformError.
    """

    platform = "linkedin"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, rate_limiter=None):
        super().__init__(transport=transport, rate_limiter=rate_limiter)
        self.base_url = "https://api.linkedin.com/rest"
        self.mapper = LinkedInMapper()

    def _headers(self) -> dict:
        token = self._require(settings.linkedin_access_token, "linkedin_access_token")
        return {
            "Authorization": f"Bearer {token}",
            "LinkedIn-Version": settings.linkedin_api_version,
            "X-Restli-Protocol-Version": "2.0.0",
        }

    async def fetch_profile(self, identifier: str, profile_type: str | None = None) -> dict:
        if profile_type == "personal":
            raise PlatformError(
                self.platform,
                "member profiles are not accessible",
                detail="only linkedin.com/company/ pages can be analyzed",
            )

        headers = self._headers()
        data = await self._get_json(
            f"{self.base_url}/organizations",
            params={"q": "vanityName", "vanityName": identifier},
            headers=headers,
        )
        elements = data.get("elements") or []
        if not elements:
            raise ProfileNotFoundError(self.platform, identifier)
        organization = dict(elements[0])

        urn = quote(f"urn:li:organization:{organization['id']}", safe="")
        network = await self._get_json(
            f"{self.base_url}/networkSizes/{urn}",
            params={"edgeType": "COMPANY_FOLLOWED_BY_MEMBER"},
            headers=headers,
        )
        organization["_followers"] = network.get("firstDegreeSize")
        return self.mapper.map_profile(organization)

    async def _social_actions(self, post_urn: str, headers: dict, semaphore: asyncio.Semaphore) -> dict:
        try:
            async with semaphore:
                await self._throttle()
                return await self._get_json(f"{self.base_url}/socialActions/{quote(post_urn, safe='')}", headers=headers)
        except PlatformAPIError as e:
            # Deleted or restricted posts 404 here; count them as zero engagement
            if e.status_code == 404:
                return {}
            raise

    async def fetch_recent_posts(self, identifier: str, max_results: int = 50) -> list[dict]:
        headers = self._headers()
        data = await self._get_json(
            f"{self.base_url}/posts",
            params={
                "q": "author",
                "author": f"urn:li:organization:{identifier}",
                "count": min(max_results, 100),
                "sortBy": "LAST_MODIFIED",
            },
            headers=headers,
        )
        posts = (data.get("elements") or [])[:max_results]
        # One socialActions call per post
        semaphore = asyncio.Semaphore(settings.linkedin_social_actions_concurrency)
        socials = await asyncio.gather(*[
            self._social_actions(p["id"], headers, semaphore) for p in posts if p.get("id")
        ])

        merged = []
        social_iter = iter(socials)
        for post in posts:
            post = dict(post)
            post["_social"] = next(social_iter) if post.get("id") else {}
            merged.append(post)
        return self.mapper.map_posts(merged)
