import httpx

from app.config import get_settings
from app.exceptions import ProfileNotFoundError
from app.scraping.clients.base import AbstractSocialClient
from app.scraping.mappers.youtube_mapper import YouTubeMapper

settings = get_settings()

CHANNEL_PARTS = "snippet,statistics,contentDetails,brandingSettings"


def uploads_playlist_id(channel_id: str) -> str:
    """Every channel's uploads playlist is its id with the UC prefix swapped for UU."""
    if channel_id.startswith("UC"):
        return "UU" + channel_id[2:]
    return channel_id


class YouTubeClient(AbstractSocialClient):
    """Client for the YouTube Data API v3 using a server API key."""

    platform = "youtube"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, rate_limiter=None):
        super().__init__(transport=transport, rate_limiter=rate_limiter)
        self.base_url = "https://www.googleapis.com/youtube/v3"
        self.mapper = YouTubeMapper()

    def _params(self, **params) -> dict:
        params["key"] = self._require(settings.youtube_api_key, "youtube_api_key")
        return params

    async def _channels(self, **lookup) -> list[dict]:
        data = await self._get_json(f"{self.base_url}/channels", params=self._params(part=CHANNEL_PARTS, **lookup))
        return data.get("items") or []

    async def fetch_profile(self, identifier: str, profile_type: str | None = None) -> dict:
        """
        Resolve a channel by the lookup its URL form requires:
        - channel -> channels?id=
        - handle  -> channels?forHandle=@handle
        - custom  -> channels?forUsername= (legacy /user/ names), falling back to
          a channel search for /c/ vanity names, which have no direct lookup.
        """
        if profile_type == "channel":
            items = await self._channels(id=identifier)
        elif profile_type == "handle":
            items = await self._channels(forHandle=f"@{identifier}")
        else:
            items = await self._channels(forUsername=identifier)
            if not items:
                search = await self._get_json(
                    f"{self.base_url}/search",
                    params=self._params(part="snippet", type="channel", q=identifier, maxResults=1),
                )
                hits = search.get("items") or []
                channel_id = ((hits[0].get("id") or {}).get("channelId")) if hits else None
                if channel_id:
                    items = await self._channels(id=channel_id)

        if not items:
            raise ProfileNotFoundError(self.platform, identifier)
        return self.mapper.map_profile(items[0])

    async def fetch_recent_posts(self, identifier: str, max_results: int = 50) -> list[dict]:
        """
        List the uploads playlist, then hydrate statistics with one videos call.
        Both endpoints cap maxResults at 50.
        """
        playlist = await self._get_json(
            f"{self.base_url}/playlistItems",
            params=self._params(
                part="contentDetails",
                playlistId=uploads_playlist_id(identifier),
                maxResults=min(max_results, 50),
            ),
        )
        video_ids = [
            (item.get("contentDetails") or {}).get("videoId")
            for item in playlist.get("items") or []
        ]
        video_ids = [v for v in video_ids if v]
        if not video_ids:
            return []

        videos = await self._get_json(
            f"{self.base_url}/videos",
            params=self._params(part="snippet,statistics", id=",".join(video_ids)),
        )
        return self.mapper.map_posts(videos.get("items") or [])
