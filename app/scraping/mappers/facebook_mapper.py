from app.scraping.mappers.base import AbstractPlatformMapper, to_int, to_iso


def _summary_count(edge) -> int:
    """Graph edges requested with .summary(total_count) carry the count in summary."""
    if isinstance(edge, dict):
        return to_int((edge.get("summary") or {}).get("total_count"))
    return 0


class FacebookMapper(AbstractPlatformMapper):
    """
    Maps Facebook Graph API page objects and page posts to the common format.

    Pages expose both fan_count (likes) and followers_count; followers_count
    is preferred when the token has permission to read it.
    """

    def map_profile(self, api_response: dict) -> dict:
        result = self.empty_profile()
        if not api_response:
            return result

        data = api_response
        # Proxies sometimes wrap the object: {success, data: {...}}
        if "success" in api_response and isinstance(api_response.get("data"), dict):
            data = api_response["data"]

        result["id"] = str(data.get("id", "")) or None
        result["username"] = data.get("username")
        result["display_name"] = data.get("name")
        result["followers"] = to_int(data.get("followers_count") or data.get("fan_count"))
        result["verified"] = data.get("verification_status") in ("blue_verified", "gray_verified") or bool(
            data.get("is_verified", False)
        )
        result["bio"] = data.get("about") or data.get("description")
        result["website"] = data.get("website") or data.get("link")

        # Picture: { data: { url } } or { url }
        picture = data.get("picture") or {}
        if isinstance(picture, dict):
            pic_data = picture.get("data") or {}
            result["profile_image"] = pic_data.get("url") if isinstance(pic_data, dict) else None
            result["profile_image"] = result["profile_image"] or picture.get("url")
        return result

    def map_post(self, api_response: dict) -> dict:
        result = self.empty_post()
        attachments = (api_response.get("attachments") or {}).get("data") or []
        first = attachments[0] if attachments else {}

        result["id"] = str(api_response.get("id", "")) or None
        result["text"] = api_response.get("message") or ""
        result["likes"] = _summary_count(api_response.get("reactions"))
        result["comments"] = _summary_count(api_response.get("comments"))
        result["shares"] = to_int((api_response.get("shares") or {}).get("count"))
        result["created_at"] = to_iso(api_response.get("created_time"))
        result["url"] = api_response.get("permalink_url")

        media_type = first.get("media_type") or first.get("type")
        result["has_media"] = media_type in ("photo", "video", "album", "animated_image_video")
        result["media_type"] = media_type
        result["is_reshare"] = media_type == "share" or bool(api_response.get("parent_id"))
        return result
