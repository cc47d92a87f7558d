"""Test fixtures for repowalk consumers.

These fixtures provide an in-memory content fetcher so walks can be tested
without network access, with controllable failures, rate limits and delays.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..core import ChildEntry, ContentFetcher, DirectoryNode, FetchResult, FileNode, RateInfo
from ..errors import ContentFetcherError, RateLimitExceeded


def build_tree(paths: Iterable[str]) -> Dict[str, Any]:
    """Build a nested tree from a list of file paths.

    Directories are dicts, files hold their path as content. Listing order
    follows the order paths are first seen.

    Example:
        >>> build_tree(["a.txt", "dir/b.txt"])
        {'a.txt': 'a.txt', 'dir': {'b.txt': 'dir/b.txt'}}
    """
    tree: Dict[str, Any] = {}
    for path in paths:
        parts = path.strip("/").split("/")
        current = tree
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = path.strip("/")
    return tree


class InMemoryContentFetcher(ContentFetcher):
    """Content fetcher backed by a nested dict.

    Example:
        fetcher = InMemoryContentFetcher(
            build_tree(["a.txt", "dir/b.txt"]),
            failures={"dir/b.txt": RuntimeError("boom")},
        )
        walker = Walker(fetcher, "owner", "repo")

    Attributes:
        fetches: Every path requested, in request order
        max_active: Highest number of fetches observed in progress at once
    """

    def __init__(
        self,
        tree: Dict[str, Any],
        delay: float = 0.0,
        delays: Optional[Dict[str, float]] = None,
        failures: Optional[Dict[str, BaseException]] = None,
        rate_limits: Optional[Dict[str, int]] = None,
        reset_after: float = 0.0,
    ):
        """Initialize fetcher.

        Args:
            tree: Nested dict; dicts are directories, anything else a file
            delay: Seconds each fetch takes
            delays: Path -> seconds, overriding ``delay`` for that path
            failures: Path -> exception raised whenever that path is fetched
            rate_limits: Path -> number of times that path is rate limited
                before it resolves
            reset_after: Seconds from now used as the reset instant
        """
        self.tree = tree
        self.delay = delay
        self.delays = dict(delays or {})
        self.failures = dict(failures or {})
        self.rate_limits = dict(rate_limits or {})
        self.reset_after = reset_after
        self.fetches: List[str] = []
        self.refs: List[Optional[str]] = []
        self.max_active = 0
        self._active = 0
        self.closed = False

    async def fetch(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None
    ) -> FetchResult:
        path = path.strip("/")
        self.fetches.append(path)
        self.refs.append(ref)

        self._active += 1
        self.max_active = max(self.max_active, self._active)
        try:
            await asyncio.sleep(self.delays.get(path, self.delay))
        finally:
            self._active -= 1

        if path in self.failures:
            raise self.failures[path]

        if self.rate_limits.get(path, 0) > 0:
            self.rate_limits[path] -= 1
            reset_at = datetime.now(timezone.utc) + timedelta(seconds=self.reset_after)
            raise RateLimitExceeded(reset_at, status=403)

        return FetchResult(self._resolve(path), RateInfo(limit=5000, remaining=5000))

    def _resolve(self, path: str):
        current: Any = self.tree
        if path:
            for part in path.split("/"):
                if not isinstance(current, dict) or part not in current:
                    raise ContentFetcherError(f"Not Found: '{path}'", status=404)
                current = current[part]

        if not isinstance(current, dict):
            content = str(current)
            return FileNode(path, metadata={"type": "file", "size": len(content)})

        children = []
        for name, value in current.items():
            child_path = f"{path}/{name}" if path else name
            kind = "dir" if isinstance(value, dict) else "file"
            children.append(ChildEntry(child_path, name, kind))
        return DirectoryNode(path, children)

    def count(self, path: str) -> int:
        """Number of times ``path`` was fetched."""
        return self.fetches.count(path.strip("/"))

    async def close(self):
        self.closed = True
