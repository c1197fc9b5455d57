"""Competitor analysis exception hierarchy.

Every error carries a human-readable ``message`` and an optional ``detail``
with technical context. Input errors and total collection failures surface
to the caller as 400s, analysis failures as 500s; platform errors are caught
per profile by the collector and never abort sibling profiles.
"""


class CompetitorAnalysisError(Exception):
    """Base exception for the competitor analysis pipeline."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.message = message
        self.detail = detail
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


# ── Input errors ─────────────────────────────────────────────────────


class InputValidationError(CompetitorAnalysisError):
    """Request rejected before any collection work started."""


class NoProfilesError(InputValidationError):
    def __init__(self, message: str = "At least one competitor profile URL is required") -> None:
        super().__init__(message)


class TooManyProfilesError(InputValidationError):
    def __init__(self, limit: int, received: int) -> None:
        self.limit = limit
        self.received = received
        super().__init__(
            f"Maximum {limit} competitors can be analyzed at once",
            detail=f"received {received}",
        )


class InvalidProfileUrlError(InputValidationError):
    def __init__(self, url: str, reason: str = "Invalid profile URL") -> None:
        self.url = url
        super().__init__(reason, detail=url)


class UnsupportedPlatformError(CompetitorAnalysisError):
    def __init__(self, platform_or_url: str) -> None:
        self.platform = platform_or_url
        super().__init__("Unsupported platform or invalid URL format", detail=platform_or_url)


# ── Platform adapter errors ──────────────────────────────────────────


class PlatformError(CompetitorAnalysisError):
    """Raised by platform clients; always tagged with the platform name."""

    def __init__(self, platform: str, message: str, detail: str | None = None) -> None:
        self.platform = platform
        super().__init__(f"[{platform}] {message}", detail=detail)


class PlatformAPIError(PlatformError):
    def __init__(self, platform: str, status_code: int, detail: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(platform, f"upstream API returned HTTP {status_code}", detail=detail)


class PlatformTimeoutError(PlatformError):
    def __init__(self, platform: str, detail: str | None = None) -> None:
        super().__init__(platform, "upstream API request timed out", detail=detail)


class PlatformNotConfiguredError(PlatformError):
    def __init__(self, platform: str, setting: str) -> None:
        super().__init__(platform, "API credentials are not configured", detail=f"set {setting.upper()}")


class ProfileNotFoundError(PlatformError):
    def __init__(self, platform: str, identifier: str) -> None:
        super().__init__(platform, "profile not found", detail=identifier)


# ── Analysis errors ──────────────────────────────────────────────────


class AIServiceError(CompetitorAnalysisError):
    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, detail=detail)


class AllCollectionsFailedError(CompetitorAnalysisError):
    """No competitor could be collected; the AI service is never called."""

    def __init__(self, failures: list[dict]) -> None:
        self.failures = failures
        super().__init__("Failed to collect data from any competitor profiles")


class AnalysisFailedError(CompetitorAnalysisError):
    """Analysis aborted after collection; a failed record has been persisted."""

    def __init__(self, message: str, analysis_id: str | None = None) -> None:
        self.analysis_id = analysis_id
        super().__init__("Competitor analysis failed", detail=message)
