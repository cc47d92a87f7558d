"""Content fetcher abstraction.

A content fetcher resolves one repository path to a node. It is the only
component that talks to the remote service, and the only one allowed to
raise :class:`~repowalk.errors.RateLimitExceeded`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from .node import DirectoryNode, FileNode


@dataclass
class RateInfo:
    """Rate limit state reported by the remote service with a response."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_at: Optional[datetime] = None


@dataclass
class FetchResult:
    """A resolved path: exactly one node plus the rate limit state."""

    node: Union[FileNode, DirectoryNode]
    rate: RateInfo = field(default_factory=RateInfo)


class ContentFetcher(ABC):
    """Abstract base class for content fetchers.

    Implementations must be safe to share between concurrent tasks.
    """

    @abstractmethod
    async def fetch(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None
    ) -> FetchResult:
        """Fetch the node at ``path``.

        Args:
            owner: Repository owner
            repo: Repository name
            path: Repository-relative path ("" for the root)
            ref: Branch, tag or commit to read from

        Returns:
            FetchResult holding a FileNode or a DirectoryNode

        Raises:
            RateLimitExceeded: If the remote rate limit is exhausted
            ContentFetcherError: If the path cannot be resolved
        """
        pass

    async def close(self):
        """Clean up fetcher resources.

        Override if the fetcher holds connections.
        """
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
