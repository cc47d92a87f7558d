"""Core abstractions for repository walking.

This module defines the node model, the content fetcher interface and the
walker that ties them together.
"""

from .node import RepositoryNode, FileNode, DirectoryNode, ChildEntry, normalize_path
from .fetcher import ContentFetcher, FetchResult, RateInfo
from .fanout import FanOut
from .walker import Walker, FileCallback

__all__ = [
    # Nodes
    'RepositoryNode',
    'FileNode',
    'DirectoryNode',
    'ChildEntry',
    'normalize_path',
    # Fetcher
    'ContentFetcher',
    'FetchResult',
    'RateInfo',
    # Walking
    'FanOut',
    'Walker',
    'FileCallback',
]
