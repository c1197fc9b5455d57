"""Extract (platform, username, type) from a social media profile URL.

Supported URL formats:
- https://twitter.com/{username}, https://x.com/{username}
- https://instagram.com/{username}
- https://youtube.com/channel/{id}       -> type "channel"
- https://youtube.com/c/{name}, /user/{name} -> type "custom"
- https://youtube.com/@{handle}          -> type "handle"
- https://linkedin.com/in/{slug}         -> type "personal"
- https://linkedin.com/company/{slug}    -> type "company"
- https://facebook.com/{page}
"""
from urllib.parse import urlparse

from app.exceptions import InvalidProfileUrlError, UnsupportedPlatformError

SUPPORTED_PLATFORMS = ("twitter", "instagram", "youtube", "linkedin", "facebook")


def validate_profile_url(url: str) -> str:
    """Syntactic check only: an http(s) URL with a host. Returns the stripped URL."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidProfileUrlError(str(url), "Profile URL must be a non-empty string")
    value = url.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidProfileUrlError(value)
    return value


def _host_matches(hostname: str, *domains: str) -> bool:
    return any(hostname == d or hostname.endswith("." + d) for d in domains)


def _segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def _clean(username: str | None, url: str) -> str:
    value = (username or "").strip().lstrip("@")
    if not value:
        raise InvalidProfileUrlError(url, "Profile URL does not contain a username or id")
    return value


def _parse_youtube(segments: list[str], url: str) -> dict:
    if len(segments) >= 2 and segments[0] == "channel":
        return {"platform": "youtube", "username": _clean(segments[1], url), "type": "channel"}
    if len(segments) >= 2 and segments[0] in ("c", "user"):
        return {"platform": "youtube", "username": _clean(segments[-1], url), "type": "custom"}
    if segments and segments[0].startswith("@"):
        return {"platform": "youtube", "username": _clean(segments[0], url), "type": "handle"}
    raise InvalidProfileUrlError(url, "Unrecognized YouTube channel URL")


def _parse_linkedin(segments: list[str], url: str) -> dict:
    if len(segments) >= 2 and segments[0] == "in":
        return {"platform": "linkedin", "username": _clean(segments[1], url), "type": "personal"}
    if len(segments) >= 2 and segments[0] == "company":
        return {"platform": "linkedin", "username": _clean(segments[1], url), "type": "company"}
    raise InvalidProfileUrlError(url, "Unrecognized LinkedIn profile URL")


def parse_profile_url(url: str) -> dict:
    """Parse a profile URL into ``{"platform", "username", "type"}``.

    ``type`` is only set for YouTube and LinkedIn, where each subtype needs a
    different upstream lookup. Raises InvalidProfileUrlError for malformed
    input and UnsupportedPlatformError for unknown hosts. No network access.
    """
    value = validate_profile_url(url)
    parsed = urlparse(value)
    hostname = (parsed.hostname or "").lower()
    segments = _segments(parsed.path)

    if _host_matches(hostname, "twitter.com", "x.com"):
        return {"platform": "twitter", "username": _clean(segments[0] if segments else None, value), "type": None}

    if _host_matches(hostname, "instagram.com"):
        return {"platform": "instagram", "username": _clean(segments[0] if segments else None, value), "type": None}

    if _host_matches(hostname, "youtube.com"):
        return _parse_youtube(segments, value)

    if _host_matches(hostname, "linkedin.com"):
        return _parse_linkedin(segments, value)

    if _host_matches(hostname, "facebook.com"):
        return {"platform": "facebook", "username": _clean(segments[0] if segments else None, value), "type": None}

    raise UnsupportedPlatformError(hostname or value)
