import httpx

from app.config import get_settings
from app.exceptions import ProfileNotFoundError
from app.scraping.clients.base import AbstractSocialClient
from app.scraping.mappers.facebook_mapper import FacebookMapper

settings = get_settings()

PAGE_FIELDS = "id,name,username,about,description,website,link,fan_count,followers_count,verification_status,picture.type(large)"
POST_FIELDS = (
    "id,message,created_time,permalink_url,parent_id,shares,attachments,"
    "comments.summary(total_count).limit(0),reactions.summary(total_count).limit(0)"
)


class FacebookGraphClient(AbstractSocialClient):
    """Client for the Facebook Graph API, reading public page data with a page or app token."""

    platform = "facebook"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, rate_limiter=None):
        super().__init__(transport=transport, rate_limiter=rate_limiter)
        self.base_url = settings.facebook_graph_url.rstrip("/")
        self.api_version = settings.facebook_api_version
        self.mapper = FacebookMapper()

    def _params(self, **params) -> dict:
        params["access_token"] = self._require(settings.facebook_access_token, "facebook_access_token")
        return params

    async def get_object_details(self, object_id: str, fields: str | None = None) -> dict:
        """
        Get details about any Facebook object (page, post, video, etc.)
        GET /{version}/{object_id}
        """
        return await self._get_json(
            f"{self.base_url}/{self.api_version}/{object_id}",
            params=self._params(fields=fields or PAGE_FIELDS),
        )

    async def fetch_profile(self, identifier: str, profile_type: str | None = None) -> dict:
        data = await self.get_object_details(identifier)
        if not data or not data.get("id"):
            raise ProfileNotFoundError(self.platform, identifier)
        return self.mapper.map_profile(data)

    async def fetch_recent_posts(self, identifier: str, max_results: int = 50) -> list[dict]:
        """
        Get posts published by a page.
        GET /{version}/{page_id}/posts

        The Graph API caps a single page of results at 100.
        """
        data = await self._get_json(
            f"{self.base_url}/{self.api_version}/{identifier}/posts",
            params=self._params(fields=POST_FIELDS, limit=min(max_results, 100)),
        )
        posts = data.get("data") or []
        return self.mapper.map_posts(posts[:max_results])
