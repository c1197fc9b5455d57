from app.scraping.mappers.base import AbstractPlatformMapper, to_int, to_iso


class TwitterMapper(AbstractPlatformMapper):
    """Maps Twitter API v2 user and tweet objects to the common format."""

    def map_profile(self, api_response: dict) -> dict:
        result = self.empty_profile()
        if not api_response:
            return result

        # v2 wraps single objects: {"data": {...}}
        data = api_response.get("data", api_response)
        metrics = data.get("public_metrics") or {}

        result["id"] = str(data.get("id", "")) or None
        result["username"] = data.get("username")
        result["display_name"] = data.get("name")
        result["followers"] = to_int(metrics.get("followers_count"))
        result["following"] = to_int(metrics.get("following_count"))
        result["posts_count"] = to_int(metrics.get("tweet_count"))
        result["verified"] = bool(data.get("verified", False))
        result["bio"] = data.get("description")
        result["profile_image"] = data.get("profile_image_url")
        result["website"] = data.get("url")
        return result

    def map_post(self, api_response: dict) -> dict:
        result = self.empty_post()
        metrics = api_response.get("public_metrics") or {}
        referenced = api_response.get("referenced_tweets") or []
        media_keys = (api_response.get("attachments") or {}).get("media_keys") or []

        result["id"] = str(api_response.get("id", "")) or None
        result["text"] = api_response.get("text") or ""
        # like_count on v2, favorite_count on v1.1 payloads
        result["likes"] = to_int(metrics.get("like_count", api_response.get("favorite_count")))
        result["comments"] = to_int(metrics.get("reply_count", api_response.get("reply_count")))
        result["shares"] = to_int(metrics.get("retweet_count", api_response.get("retweet_count")))
        result["views"] = to_int(metrics.get("impression_count"))
        result["created_at"] = to_iso(api_response.get("created_at"))
        result["has_media"] = bool(media_keys)
        result["is_reshare"] = bool(referenced)
        result["media_type"] = "media" if media_keys else None
        if result["id"]:
            result["url"] = f"https://twitter.com/i/web/status/{result['id']}"
        return result
