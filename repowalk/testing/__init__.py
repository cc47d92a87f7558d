"""Testing utilities for repowalk consumers."""

from .fixtures import InMemoryContentFetcher, build_tree

__all__ = ['InMemoryContentFetcher', 'build_tree']
