from app.scraping.mappers.base import AbstractPlatformMapper, to_int, to_iso


class YouTubeMapper(AbstractPlatformMapper):
    """Maps YouTube Data API v3 channel and video resources to the common format.

    YouTube reports every statistic as a string ("subscriberCount": "1200").
    """

    def map_profile(self, api_response: dict) -> dict:
        result = self.empty_profile()
        if not api_response:
            return result

        snippet = api_response.get("snippet") or {}
        statistics = api_response.get("statistics") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumb = thumbnails.get("high") or thumbnails.get("default") or {}

        result["id"] = api_response.get("id")
        result["username"] = (snippet.get("customUrl") or "").lstrip("@") or None
        result["display_name"] = snippet.get("title")
        result["followers"] = to_int(statistics.get("subscriberCount"))
        result["posts_count"] = to_int(statistics.get("videoCount"))
        result["bio"] = snippet.get("description")
        result["profile_image"] = thumb.get("url")
        if snippet.get("customUrl"):
            result["website"] = f"https://www.youtube.com/{snippet['customUrl']}"
        result["uploads_playlist"] = (
            (api_response.get("contentDetails") or {}).get("relatedPlaylists") or {}
        ).get("uploads")
        result["total_views"] = to_int(statistics.get("viewCount"))
        return result

    def map_post(self, api_response: dict) -> dict:
        result = self.empty_post()
        snippet = api_response.get("snippet") or {}
        statistics = api_response.get("statistics") or {}

        result["id"] = api_response.get("id")
        title = snippet.get("title") or ""
        description = snippet.get("description") or ""
        result["text"] = f"{title}\n{description}".strip()
        result["likes"] = to_int(statistics.get("likeCount"))
        result["comments"] = to_int(statistics.get("commentCount"))
        result["views"] = to_int(statistics.get("viewCount"))
        result["created_at"] = to_iso(snippet.get("publishedAt"))
        result["has_media"] = True
        result["media_type"] = "video"
        if result["id"]:
            result["url"] = f"https://www.youtube.com/watch?v={result['id']}"
        return result
