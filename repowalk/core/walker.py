"""Recursive repository walker.

Walks every file reachable from a path, one fetch per node, calling a
callback for each file. Directories are walked depth-first in listing
order, or concurrently across siblings when the walker is configured to.
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from ..cancellation import WalkContext
from ..config import DEFAULT_BRANCH, WalkerConfig
from ..error_policies import ResetPolicy, policy_for
from ..errors import CallbackError, ContentFetcherError, FetchError, RateLimitExceeded
from ..rate_limiter import RateLimiter
from .fanout import FanOut
from .fetcher import ContentFetcher, FetchResult
from .node import ChildEntry, DirectoryNode, FileNode, normalize_path


logger = logging.getLogger(__name__)

FileCallback = Callable[[WalkContext, FileNode], Union[None, Awaitable[None]]]


class Walker:
    """Walks a remote repository through a content fetcher.

    The walker owns its fetcher and rate limiter. Both are shared by every
    task of every walk started on this instance.
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        owner: str,
        repo: str,
        branch: str = DEFAULT_BRANCH,
        concurrent: bool = False,
        wait_on_reset: bool = False,
        rate_limiter: Optional[RateLimiter] = None,
        reset_policy: Optional[ResetPolicy] = None,
        max_in_flight: Optional[int] = None,
    ):
        """Initialize walker.

        Args:
            fetcher: Resolves paths to file or directory nodes
            owner: Repository owner
            repo: Repository name
            branch: Branch passed to the fetcher as the ref
            concurrent: Walk sibling entries concurrently
            wait_on_reset: Sleep until a rate limit resets and fetch again
            rate_limiter: Request throttle (default 5 requests per second)
            reset_policy: Overrides the policy selected by ``wait_on_reset``
            max_in_flight: Optional cap on concurrently working calls
        """
        self.fetcher = fetcher
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.concurrent = concurrent
        self.wait_on_reset = wait_on_reset
        self.rate_limiter = rate_limiter or RateLimiter()
        self.reset_policy = reset_policy or policy_for(wait_on_reset)
        self.fanout = FanOut(max_in_flight)

    @classmethod
    def from_config(
        cls,
        config: WalkerConfig,
        fetcher: Optional[ContentFetcher] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> "Walker":
        """Build a walker from a parsed configuration.

        Args:
            config: Walker configuration
            fetcher: Content fetcher (a GitHub fetcher is created if None)
            rate_limiter: Request throttle (created from the config if None)
        """
        if fetcher is None:
            from ..adapters.github import GitHubContentFetcher
            fetcher = GitHubContentFetcher(config.access_token, base_url=config.api_url)

        return cls(
            fetcher,
            config.owner,
            config.repo,
            branch=config.branch,
            concurrent=config.concurrent,
            wait_on_reset=config.wait_on_reset,
            rate_limiter=rate_limiter or RateLimiter(config.requests_per_second),
            max_in_flight=config.max_in_flight,
        )

    async def walk_uri(
        self,
        path: str,
        callback: FileCallback,
        ctx: Optional[WalkContext] = None,
    ) -> None:
        """Walk every file reachable from ``path``.

        A cancelled context ends the walk quietly; it is not an error.
        Callbacks already made are not undone when the walk fails.

        Args:
            path: Repository-relative path ("" for the root)
            callback: Called as ``callback(ctx, file_node)`` for each file,
                may be a coroutine function
            ctx: Cancellation context (a fresh one if None)

        Raises:
            FetchError: If a path could not be fetched
            CallbackError: If the callback raised
        """
        if ctx is None:
            ctx = WalkContext()
        path = normalize_path(path)
        if ctx.cancelled:
            logger.debug("Walk of '%s' cancelled", path)
            return

        async with self.fanout.slot():
            result = await self._fetch(ctx, path)
            if result is None:
                return

            node = result.node
            if isinstance(node, FileNode):
                await self._walk_file(ctx, node, callback)
                return

        await self._walk_directory(ctx, node, callback)

    async def _fetch(self, ctx: WalkContext, path: str) -> Optional[FetchResult]:
        """Fetch ``path``, waiting out rate limits if the policy allows.

        Returns:
            FetchResult, or None if the context was cancelled
        """
        while True:
            if ctx.cancelled:
                logger.debug("Walk of '%s' cancelled", path)
                return None

            await self.rate_limiter.acquire()
            logger.debug("Fetch %s/%s/%s", self.owner, self.repo, path)

            try:
                result = await self.fetcher.fetch(self.owner, self.repo, path, ref=self.branch)
            except RateLimitExceeded as e:
                delay = self.reset_policy.delay_for(e)
                if delay is None:
                    raise FetchError(path, e) from e
                logger.warning("Rate limit hit fetching '%s'. Waiting %.0fs for reset", path, delay)
                await ctx.sleep(delay)
                continue
            except Exception as e:
                raise FetchError(path, e) from e

            if not isinstance(result.node, (FileNode, DirectoryNode)):
                error = ContentFetcherError(
                    f"Fetcher returned {type(result.node).__name__} for '{path}'"
                )
                raise FetchError(path, error) from error
            return result

    async def _walk_file(self, ctx: WalkContext, node: FileNode, callback: FileCallback) -> None:
        try:
            result = callback(ctx, node)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise CallbackError(node.path, e) from e

    async def _walk_directory(
        self,
        ctx: WalkContext,
        node: DirectoryNode,
        callback: FileCallback,
    ) -> None:
        if ctx.cancelled:
            return

        if self.concurrent:
            async def walk_child(child_ctx: WalkContext, entry: ChildEntry) -> None:
                await self.walk_uri(entry.path, callback, child_ctx)

            await self.fanout.run(ctx, node.children, walk_child)
            return

        for entry in node.children:
            if ctx.cancelled:
                return
            await self.walk_uri(entry.path, callback, ctx)

    async def drain(self) -> None:
        """Wait for sibling tasks still winding down after a failed walk."""
        await self.fanout.drain()

    async def aclose(self) -> None:
        """Wait for outstanding tasks and close the fetcher."""
        await self.drain()
        await self.fetcher.close()

    async def __aenter__(self) -> "Walker":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        mode = "concurrent" if self.concurrent else "sequential"
        return f"Walker({self.owner}/{self.repo}@{self.branch}, {mode})"
