from abc import ABC, abstractmethod
from datetime import datetime, timezone

# Common profile shape returned by every platform mapper
PROFILE_FIELDS = [
    "id", "username", "display_name", "followers", "following", "posts_count",
    "verified", "bio", "profile_image", "website",
]

# Common post shape consumed by the content/engagement analyzer
POST_FIELDS = [
    "id", "text", "likes", "comments", "shares", "views", "created_at",
    "url", "media_type", "has_media", "is_reshare",
]


def to_int(value) -> int:
    """Platform counters arrive as ints, numeric strings or null."""
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def to_iso(value) -> str | None:
    """Normalize an upstream timestamp to an ISO-8601 UTC string."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        # LinkedIn reports epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Graph API offsets come without a colon: 2024-05-01T10:00:00+0000
    if len(text) > 5 and text[-5] in "+-" and text[-4:].isdigit() and ":" not in text[-5:]:
        text = f"{text[:-2]}:{text[-2:]}"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


class AbstractPlatformMapper(ABC):
    """Maps platform-specific API responses to the common profile/post format."""

    @abstractmethod
    def map_profile(self, api_response: dict) -> dict:
        """Convert a profile API response to the common profile fields."""
        pass

    @abstractmethod
    def map_post(self, api_response: dict) -> dict:
        """Convert one post/tweet/video/media item to the common post fields."""
        pass

    def map_posts(self, items: list[dict]) -> list[dict]:
        return [self.map_post(item) for item in items or []]

    def empty_profile(self) -> dict:
        result = {k: None for k in PROFILE_FIELDS}
        result.update({"followers": 0, "following": 0, "posts_count": 0, "verified": False})
        return result

    def empty_post(self) -> dict:
        result = {k: None for k in POST_FIELDS}
        result.update({
            "text": "", "likes": 0, "comments": 0, "shares": 0, "views": 0,
            "has_media": False, "is_reshare": False,
        })
        return result
