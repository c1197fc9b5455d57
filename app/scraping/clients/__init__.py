from app.exceptions import UnsupportedPlatformError
from app.scraping.clients.base import AbstractSocialClient
from app.scraping.clients.facebook import FacebookGraphClient
from app.scraping.clients.instagram import InstagramClient
from app.scraping.clients.linkedin import LinkedInClient
from app.scraping.clients.twitter import TwitterClient
from app.scraping.clients.youtube import YouTubeClient

PLATFORM_CLIENTS: dict[str, type[AbstractSocialClient]] = {
    "twitter": TwitterClient,
    "instagram": InstagramClient,
    "youtube": YouTubeClient,
    "linkedin": LinkedInClient,
    "facebook": FacebookGraphClient,
}


def get_platform_client(platform: str, **kwargs) -> AbstractSocialClient:
    """Instantiate the adapter for ``platform``; the set of platforms is closed."""
    client_cls = PLATFORM_CLIENTS.get(platform)
    if client_cls is None:
        raise UnsupportedPlatformError(platform)
    return client_cls(**kwargs)


__all__ = [
    "AbstractSocialClient",
    "FacebookGraphClient",
    "InstagramClient",
    "LinkedInClient",
    "PLATFORM_CLIENTS",
    "TwitterClient",
    "YouTubeClient",
    "get_platform_client",
]
