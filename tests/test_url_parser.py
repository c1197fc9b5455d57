"""
Tests for profile URL parsing: app.scraping.url_parser
"""

from __future__ import annotations

import pytest

from app.exceptions import InvalidProfileUrlError, UnsupportedPlatformError
from app.scraping.url_parser import parse_profile_url, validate_profile_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://twitter.com/acme", {"platform": "twitter", "username": "acme", "type": None}),
        ("https://x.com/@acme/", {"platform": "twitter", "username": "acme", "type": None}),
        ("https://www.instagram.com/acme.shop/", {"platform": "instagram", "username": "acme.shop", "type": None}),
        ("https://www.youtube.com/channel/UC123abc", {"platform": "youtube", "username": "UC123abc", "type": "channel"}),
        ("https://youtube.com/c/AcmeTV", {"platform": "youtube", "username": "AcmeTV", "type": "custom"}),
        ("https://youtube.com/user/acmetv", {"platform": "youtube", "username": "acmetv", "type": "custom"}),
        ("https://www.youtube.com/@acme", {"platform": "youtube", "username": "acme", "type": "handle"}),
        ("https://www.linkedin.com/in/jane-doe", {"platform": "linkedin", "username": "jane-doe", "type": "personal"}),
        ("https://linkedin.com/company/acme-corp/", {"platform": "linkedin", "username": "acme-corp", "type": "company"}),
        ("https://m.facebook.com/AcmePage", {"platform": "facebook", "username": "AcmePage", "type": None}),
    ],
)
def test_parse_supported_urls(url, expected):
    assert parse_profile_url(url) == expected


def test_parse_is_deterministic():
    url = "https://twitter.com/acme"
    assert parse_profile_url(url) == parse_profile_url(url)


def test_unknown_host_is_unsupported():
    with pytest.raises(UnsupportedPlatformError):
        parse_profile_url("https://tiktok.com/@acme")


def test_lookalike_host_is_not_twitter():
    """netflix.com ends in 'x.com' as a string but is a different domain."""
    with pytest.raises(UnsupportedPlatformError):
        parse_profile_url("https://netflix.com/acme")


@pytest.mark.parametrize(
    "url",
    [
        "",
        "not a url",
        "ftp://twitter.com/acme",
        "https://",
        "https://twitter.com/",
        "https://www.youtube.com/watch",
        "https://www.linkedin.com/feed",
    ],
)
def test_malformed_urls_are_rejected(url):
    with pytest.raises(InvalidProfileUrlError):
        parse_profile_url(url)


def test_validate_strips_whitespace():
    assert validate_profile_url("  https://twitter.com/acme ") == "https://twitter.com/acme"


def test_validate_accepts_unsupported_hosts():
    """Syntactic validation only; platform support is decided per profile."""
    assert validate_profile_url("https://tiktok.com/@acme") == "https://tiktok.com/@acme"


def test_validate_rejects_non_string():
    with pytest.raises(InvalidProfileUrlError):
        validate_profile_url(None)
