from app.scraping.mappers.base import AbstractPlatformMapper, to_int, to_iso


class InstagramMapper(AbstractPlatformMapper):
    """Maps Instagram Graph API business_discovery responses to the common format."""

    def map_profile(self, api_response: dict) -> dict:
        result = self.empty_profile()
        if not api_response:
            return result

        data = api_response.get("business_discovery", api_response)
        result["id"] = str(data.get("id", "")) or None
        result["username"] = data.get("username")
        result["display_name"] = data.get("name")
        result["followers"] = to_int(data.get("followers_count"))
        result["following"] = to_int(data.get("follows_count"))
        result["posts_count"] = to_int(data.get("media_count"))
        result["bio"] = data.get("biography")
        result["profile_image"] = data.get("profile_picture_url")
        result["website"] = data.get("website")
        return result

    def map_post(self, api_response: dict) -> dict:
        result = self.empty_post()
        media_type = api_response.get("media_type")

        result["id"] = str(api_response.get("id", "")) or None
        result["text"] = api_response.get("caption") or ""
        result["likes"] = to_int(api_response.get("like_count"))
        result["comments"] = to_int(api_response.get("comments_count"))
        result["views"] = to_int(api_response.get("view_count") or api_response.get("video_view_count"))
        result["created_at"] = to_iso(api_response.get("timestamp"))
        result["url"] = api_response.get("permalink")
        # IMAGE, VIDEO or CAROUSEL_ALBUM
        result["media_type"] = media_type.lower() if media_type else None
        result["has_media"] = True
        return result
