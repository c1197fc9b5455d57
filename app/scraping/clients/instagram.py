import httpx

from app.config import get_settings
from app.exceptions import ProfileNotFoundError
from app.scraping.clients.base import AbstractSocialClient
from app.scraping.mappers.instagram_mapper import InstagramMapper

settings = get_settings()

PROFILE_FIELDS = "id,username,name,biography,website,profile_picture_url,followers_count,follows_count,media_count"
MEDIA_FIELDS = "id,caption,media_type,like_count,comments_count,timestamp,permalink"


class InstagramClient(AbstractSocialClient):
    """
    Reads other business/creator accounts through the Graph API business_discovery
    edge, queried from our own Instagram business account.
    """

    platform = "instagram"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, rate_limiter=None):
        super().__init__(transport=transport, rate_limiter=rate_limiter)
        self.base_url = settings.facebook_graph_url.rstrip("/")
        self.api_version = settings.facebook_api_version
        self.mapper = InstagramMapper()

    async def _discover(self, username: str, fields: str) -> dict:
        account_id = self._require(settings.instagram_business_account_id, "instagram_business_account_id")
        token = self._require(settings.facebook_access_token, "facebook_access_token")
        data = await self._get_json(
            f"{self.base_url}/{self.api_version}/{account_id}",
            params={
                "fields": f"business_discovery.username({username}){{{fields}}}",
                "access_token": token,
            },
        )
        discovery = data.get("business_discovery")
        if not discovery:
            raise ProfileNotFoundError(self.platform, username)
        return discovery

    def posts_identifier(self, profile: dict, identifier: str) -> str:
        # business_discovery is keyed by username, not by the account id
        return profile.get("username") or identifier

    async def fetch_profile(self, identifier: str, profile_type: str | None = None) -> dict:
        discovery = await self._discover(identifier, PROFILE_FIELDS)
        return self.mapper.map_profile(discovery)

    async def fetch_recent_posts(self, identifier: str, max_results: int = 50) -> list[dict]:
        discovery = await self._discover(identifier, f"media.limit({min(max_results, 100)}){{{MEDIA_FIELDS}}}")
        media = (discovery.get("media") or {}).get("data") or []
        return self.mapper.map_posts(media[:max_results])
