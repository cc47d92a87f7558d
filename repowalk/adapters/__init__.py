"""Content fetchers for remote repository services.

This module contains fetchers that bridge specific services
to the generic content fetcher interface.
"""

from .github import GitHubContentFetcher

__all__ = [
    'GitHubContentFetcher',
]
