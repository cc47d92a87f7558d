"""GitHub contents API fetcher.

Resolves repository paths with ``GET /repos/{owner}/{repo}/contents/{path}``
using a long-lived ``httpx.AsyncClient``. A JSON object is a file, a JSON
list is a directory listing. Listings are paginated through ``Link``
headers and concatenated in order.

This fetcher never retries. Rate-limit responses are raised as
:class:`~repowalk.errors.RateLimitExceeded` so the walker's policy decides
whether to wait for the reset.

Reference: https://docs.github.com/en/rest/repos/contents
"""

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..config import DEFAULT_API_URL
from ..core import ChildEntry, ContentFetcher, DirectoryNode, FetchResult, FileNode, RateInfo
from ..errors import ContentFetcherError, RateLimitExceeded


logger = logging.getLogger(__name__)

_NEXT_LINK = re.compile(r'\s*<([^>]+)>;\s*rel="next"')

# Keys copied from a contents object into FileNode.metadata
_FILE_METADATA_KEYS = (
    "type",
    "sha",
    "size",
    "url",
    "html_url",
    "git_url",
    "download_url",
    "target",
    "submodule_git_url",
)


class GitHubContentFetcher(ContentFetcher):
    """Content fetcher for the GitHub REST API v3.

    Attributes:
        base_url: API base URL (default: https://api.github.com)
        last_rate: Rate limit state from the most recent response
    """

    # Maximum items per page for directory listings
    DEFAULT_PER_PAGE = 100

    # Listings needing more pages than this fail instead of truncating
    MAX_PAGES = 100

    CONNECT_TIMEOUT = 5.0  # seconds
    READ_TIMEOUT = 30.0  # seconds

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        per_page: int = DEFAULT_PER_PAGE,
    ):
        """Initialize fetcher with token authentication.

        Args:
            token: GitHub access token
            base_url: API base URL (default: https://api.github.com)
            transport: Custom httpx transport (tests use httpx.MockTransport)
            per_page: Directory entries requested per page
        """
        self.base_url = (base_url or DEFAULT_API_URL).rstrip("/")
        self.per_page = per_page
        self.last_rate = RateInfo()

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "repowalk",
            },
            timeout=httpx.Timeout(self.READ_TIMEOUT, connect=self.CONNECT_TIMEOUT),
            transport=transport,
        )

    async def close(self) -> None:
        """Close the httpx client and release connections."""
        await self._client.aclose()

    async def fetch(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None
    ) -> FetchResult:
        path = path.strip("/")
        url = f"/repos/{quote(owner)}/{quote(repo)}/contents/{quote(path)}"

        params: Dict[str, str] = {"per_page": str(self.per_page)}
        if ref:
            params["ref"] = ref

        response = await self._get(url, params)
        data = response.json()

        if isinstance(data, dict):
            return FetchResult(self._file_node(path, data), self.last_rate)

        if not isinstance(data, list):
            raise ContentFetcherError(
                f"Unexpected contents response for '{path}': {type(data).__name__}"
            )

        entries: List[Dict[str, Any]] = list(data)
        next_url = self._parse_next_link(response.headers.get("Link", ""))
        pages = 1

        while next_url and pages < self.MAX_PAGES:
            response = await self._get(next_url[len(self.base_url):], None)
            page = response.json()
            if not isinstance(page, list):
                raise ContentFetcherError(f"Unexpected listing page for '{path}'")
            entries.extend(page)
            next_url = self._parse_next_link(response.headers.get("Link", ""))
            pages += 1
            logger.debug("Paginating '%s': page %d, %d entries so far", path, pages, len(entries))

        if next_url:
            raise ContentFetcherError(
                f"Listing for '{path}' exceeds {self.MAX_PAGES} pages of {self.per_page} entries"
            )

        children = [self._child_entry(entry) for entry in entries]
        return FetchResult(DirectoryNode(path, children), self.last_rate)

    async def _get(self, url: str, params: Optional[Dict[str, str]]) -> httpx.Response:
        """Issue one GET request and translate error responses.

        Raises:
            RateLimitExceeded: On 403 with no remaining quota, or 429
            ContentFetcherError: On any other failure
        """
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise ContentFetcherError(f"HTTP error: {e}") from e

        self.last_rate = self._parse_rate_info(response)

        if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            reset_at = self.last_rate.reset_at or datetime.now(timezone.utc)
            raise RateLimitExceeded(reset_at, status=403)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "60")
            try:
                seconds = float(retry_after)
            except ValueError:
                seconds = 60.0
            reset_at = datetime.fromtimestamp(time.time() + seconds, tz=timezone.utc)
            raise RateLimitExceeded(reset_at, "Secondary rate limit exceeded", status=429)

        if response.is_error:
            try:
                error_body = response.json() if response.content else {}
            except ValueError:
                error_body = {}
            message = error_body.get("message", response.text) if isinstance(error_body, dict) else response.text
            raise ContentFetcherError(
                f"GitHub API error {response.status_code}: {message}",
                status=response.status_code,
            )

        return response

    def _parse_rate_info(self, response: httpx.Response) -> RateInfo:
        """Read rate limit headers from a response."""
        info = RateInfo()

        for header, attr in (("X-RateLimit-Limit", "limit"), ("X-RateLimit-Remaining", "remaining")):
            value = response.headers.get(header)
            if value is not None:
                try:
                    setattr(info, attr, int(value))
                except ValueError:
                    logger.warning("Non-numeric %s header: %r", header, value)

        reset = response.headers.get("X-RateLimit-Reset")
        if reset is not None:
            try:
                info.reset_at = datetime.fromtimestamp(float(reset), tz=timezone.utc)
            except ValueError:
                logger.warning("Non-numeric X-RateLimit-Reset header: %r", reset)

        return info

    def _parse_next_link(self, link_header: str) -> Optional[str]:
        """Extract the ``rel="next"`` URL from a Link header.

        Only URLs under the configured base URL are followed.
        """
        if not link_header:
            return None

        for part in link_header.split(","):
            match = _NEXT_LINK.match(part.strip())
            if match:
                url = match.group(1)
                if not url.startswith(self.base_url + "/"):
                    logger.warning("Rejecting Link header URL not matching base_url: %.100s", url)
                    return None
                return url
        return None

    @staticmethod
    def _file_node(path: str, data: Dict[str, Any]) -> FileNode:
        metadata = {key: data[key] for key in _FILE_METADATA_KEYS if key in data}
        return FileNode(
            path=data.get("path", path),
            name=data.get("name", ""),
            metadata=metadata,
        )

    @staticmethod
    def _child_entry(entry: Dict[str, Any]) -> ChildEntry:
        return ChildEntry(
            path=entry["path"],
            name=entry.get("name", entry["path"].rsplit("/", 1)[-1]),
            type=entry.get("type", "file"),
            sha=entry.get("sha"),
            size=entry.get("size"),
        )

    def __repr__(self) -> str:
        return f"GitHubContentFetcher({self.base_url})"
