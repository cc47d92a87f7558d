"""High-level API for repowalk.

This module provides simple functions for common walks, building the
walker from a walker URI and closing it afterwards.
"""

from typing import Iterable, List, Optional

from .cancellation import WalkContext
from .config import parse_walker_uri
from .core import ContentFetcher, FileCallback, FileNode, Walker
from .rate_limiter import RateLimiter


def new_walker(
    uri: str,
    fetcher: Optional[ContentFetcher] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> Walker:
    """Create a walker from a walker URI.

    Args:
        uri: Walker URI (see :mod:`repowalk.config`)
        fetcher: Custom content fetcher (GitHub if None)
        rate_limiter: Custom request throttle

    Returns:
        Configured Walker

    Raises:
        ConfigurationError: If the URI is invalid. Nothing is fetched.
    """
    config = parse_walker_uri(uri)
    return Walker.from_config(config, fetcher=fetcher, rate_limiter=rate_limiter)


async def walk_repository(
    uri: str,
    paths: Iterable[str],
    callback: FileCallback,
    fetcher: Optional[ContentFetcher] = None,
    ctx: Optional[WalkContext] = None,
) -> None:
    """Walk several root paths with one walker.

    Roots are walked one after another; the first failure stops the rest.

    Args:
        uri: Walker URI
        paths: Root paths to walk
        callback: Called as ``callback(ctx, file_node)`` for each file
        fetcher: Custom content fetcher (GitHub if None)
        ctx: Cancellation context shared by all roots
    """
    walker = new_walker(uri, fetcher=fetcher)
    async with walker:
        for path in paths:
            await walker.walk_uri(path, callback, ctx)


async def list_files(
    uri: str,
    *paths: str,
    fetcher: Optional[ContentFetcher] = None
) -> List[str]:
    """Get the paths of all files below the given roots.

    Order follows the walk: listing order for sequential walkers,
    completion order for concurrent ones.

    Args:
        uri: Walker URI
        *paths: Root paths (the repository root if none given)
        fetcher: Custom content fetcher (GitHub if None)

    Returns:
        List of repository-relative file paths
    """
    found: List[str] = []

    def collect(ctx: WalkContext, node: FileNode) -> None:
        found.append(node.path)

    await walk_repository(uri, paths or ("",), collect, fetcher=fetcher)
    return found
