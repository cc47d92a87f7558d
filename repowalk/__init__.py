"""repowalk - recursive walker for remote source-control repositories.

Enumerates every file reachable from a path in a repository served by a
tree/contents API (GitHub), calling a handler for each file:

    from repowalk import new_walker

    walker = new_walker("github://owner/repo?access_token=TOKEN&concurrent=true")
    async with walker:
        await walker.walk_uri("docs", lambda ctx, node: print(node.path))

Requests are throttled by a fixed-cadence rate limiter. With
``wait-on-reset`` the walker sleeps through exhausted rate limits and
fetches the same path again.
"""

__version__ = "0.1.0"

from .errors import (
    WalkError,
    ConfigurationError,
    ContentFetcherError,
    RateLimitExceeded,
    FetchError,
    CallbackError,
)
from .config import WalkerConfig, parse_walker_uri, DEFAULT_BRANCH
from .cancellation import WalkContext
from .rate_limiter import RateLimiter
from .error_policies import ResetPolicy, FailFastPolicy, WaitOnResetPolicy
from .core import (
    RepositoryNode,
    FileNode,
    DirectoryNode,
    ChildEntry,
    ContentFetcher,
    FetchResult,
    RateInfo,
    FanOut,
    Walker,
)
from .api import new_walker, walk_repository, list_files

__all__ = [
    "__version__",
    # Errors
    "WalkError",
    "ConfigurationError",
    "ContentFetcherError",
    "RateLimitExceeded",
    "FetchError",
    "CallbackError",
    # Configuration
    "WalkerConfig",
    "parse_walker_uri",
    "DEFAULT_BRANCH",
    # Walking
    "WalkContext",
    "RateLimiter",
    "ResetPolicy",
    "FailFastPolicy",
    "WaitOnResetPolicy",
    "RepositoryNode",
    "FileNode",
    "DirectoryNode",
    "ChildEntry",
    "ContentFetcher",
    "FetchResult",
    "RateInfo",
    "FanOut",
    "Walker",
    # High-level API
    "new_walker",
    "walk_repository",
    "list_files",
]
