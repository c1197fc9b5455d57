import httpx

from app.config import get_settings
from app.exceptions import ProfileNotFoundError
from app.scraping.clients.base import AbstractSocialClient
from app.scraping.mappers.twitter_mapper import TwitterMapper

settings = get_settings()

USER_FIELDS = "description,public_metrics,verified,profile_image_url,location,url,created_at,protected"
TWEET_FIELDS = "created_at,public_metrics,attachments,referenced_tweets"


class TwitterClient(AbstractSocialClient):
    """Client for the Twitter (X) API v2 using an app bearer token."""

    platform = "twitter"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, rate_limiter=None):
        super().__init__(transport=transport, rate_limiter=rate_limiter)
        self.base_url = "https://api.twitter.com/2"
        self.mapper = TwitterMapper()

    def _headers(self) -> dict:
        token = self._require(settings.twitter_bearer_token, "twitter_bearer_token")
        return {"Authorization": f"Bearer {token}"}

    async def fetch_profile(self, identifier: str, profile_type: str | None = None) -> dict:
        """
        GET /2/users/by/username/{username}

        A missing user comes back as HTTP 200 with an ``errors`` array and no ``data``.
        """
        data = await self._get_json(
            f"{self.base_url}/users/by/username/{identifier}",
            params={"user.fields": USER_FIELDS},
            headers=self._headers(),
        )
        if not data.get("data"):
            raise ProfileNotFoundError(self.platform, identifier)
        return self.mapper.map_profile(data)

    async def fetch_recent_posts(self, identifier: str, max_results: int = 50) -> list[dict]:
        """
        GET /2/users/{id}/tweets

        The endpoint accepts max_results between 5 and 100.
        """
        data = await self._get_json(
            f"{self.base_url}/users/{identifier}/tweets",
            params={
                "max_results": min(max(max_results, 5), 100),
                "tweet.fields": TWEET_FIELDS,
            },
            headers=self._headers(),
        )
        tweets = data.get("data") or []
        return self.mapper.map_posts(tweets[:max_results])
