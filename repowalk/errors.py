"""Error types raised by repowalk.

Configuration problems surface before any request is made. Fetcher errors
come from the content fetcher; the walker wraps them (and callback errors)
with the path being walked so the caller can tell which branch failed.
"""

from datetime import datetime
from typing import Optional


class WalkError(Exception):
    """Base class for every error raised by repowalk."""


class ConfigurationError(WalkError, ValueError):
    """Raised when a walker URI or option is invalid."""


class ContentFetcherError(WalkError):
    """Raised by a content fetcher when a path cannot be retrieved.

    Attributes:
        status: HTTP status code when the failure came from a response
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RateLimitExceeded(ContentFetcherError):
    """Raised by a content fetcher when the remote rate limit is exhausted.

    Attributes:
        reset_at: Absolute time after which requests are permitted again
    """

    def __init__(self, reset_at: datetime, message: str = "Rate limit exceeded",
                 status: Optional[int] = None):
        self.reset_at = reset_at
        super().__init__(f"{message}. Resets at {reset_at.isoformat()}", status=status)


class FetchError(WalkError):
    """A fetch failed for ``path``. The original error is ``__cause__``."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to fetch '{path}': {cause}")


class CallbackError(WalkError):
    """The file callback raised for ``path``. The original error is ``__cause__``."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Callback failed for '{path}': {cause}")
