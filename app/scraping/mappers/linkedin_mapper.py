from app.scraping.mappers.base import AbstractPlatformMapper, to_int, to_iso


class LinkedInMapper(AbstractPlatformMapper):
    """
    Maps LinkedIn REST (versioned) organization and post objects to the common format.

    Engagement counts are not part of the post object; the client merges the
    matching socialActions summary in under ``_social``.
    """

    def map_profile(self, api_response: dict) -> dict:
        result = self.empty_profile()
        if not api_response:
            return result

        result["id"] = str(api_response.get("id", "")) or None
        result["username"] = api_response.get("vanityName")
        result["display_name"] = api_response.get("localizedName")
        result["followers"] = to_int(api_response.get("_followers"))
        result["bio"] = api_response.get("localizedDescription")
        result["website"] = api_response.get("localizedWebsite")
        return result

    def map_post(self, api_response: dict) -> dict:
        result = self.empty_post()
        social = api_response.get("_social") or {}
        content = api_response.get("content") or {}

        result["id"] = api_response.get("id")
        result["text"] = api_response.get("commentary") or ""
        result["likes"] = to_int((social.get("likesSummary") or {}).get("totalLikes"))
        result["comments"] = to_int((social.get("commentsSummary") or {}).get("aggregatedTotalComments"))
        # publishedAt is epoch milliseconds
        result["created_at"] = to_iso(api_response.get("publishedAt") or api_response.get("createdAt"))
        if result["id"]:
            result["url"] = f"https://www.linkedin.com/feed/update/{result['id']}"

        media_kind = next(iter(content), None)
        result["has_media"] = media_kind in ("media", "multiImage", "poll", "carousel")
        result["media_type"] = media_kind
        result["is_reshare"] = bool(api_response.get("reshareContext"))
        return result
