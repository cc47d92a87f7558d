"""Configuration for repository walkers.

A walker is described by a URI so it can be passed around as a single
string (on the command line, in environment variables, ...)::

    github://<owner>/<repo>?access_token=<token>&branch=main&concurrent=true

The scheme is ignored. The authority is the repository owner and the path
must be exactly one segment, the repository name. Query parameters:

    access_token    required
    branch          default "main"
    concurrent      boolean, fan out across sibling entries
    wait-on-reset   boolean, sleep until the rate limit resets and retry
    rate            permits per second for the request throttle (default 5)
    max-in-flight   optional cap on concurrently working traversal calls
    api-url         API base URL (GitHub Enterprise)
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from .errors import ConfigurationError


DEFAULT_BRANCH = "main"
DEFAULT_REQUESTS_PER_SECOND = 5.0
DEFAULT_API_URL = "https://api.github.com"

# Spellings accepted by Go's strconv.ParseBool
_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(value: str) -> bool:
    """Parse a boolean query parameter.

    Raises:
        ValueError: If ``value`` is not a recognised spelling
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


@dataclass
class WalkerConfig:
    """Everything needed to build a :class:`~repowalk.core.walker.Walker`."""

    owner: str
    repo: str
    access_token: str = field(default="", repr=False)
    branch: str = DEFAULT_BRANCH
    concurrent: bool = False
    wait_on_reset: bool = False
    requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND
    max_in_flight: Optional[int] = None
    api_url: str = DEFAULT_API_URL

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.owner:
            errors.append("missing repository owner")

        if not self.repo:
            errors.append("missing repository name")

        if not self.access_token:
            errors.append("missing access token")

        if not self.branch:
            errors.append("branch cannot be empty")

        if not math.isfinite(self.requests_per_second) or self.requests_per_second <= 0:
            errors.append("rate must be a finite positive number")

        if self.max_in_flight is not None and self.max_in_flight < 1:
            errors.append("max-in-flight must be at least 1")

        if not self.api_url.startswith(("http://", "https://")):
            errors.append(f"invalid api-url: {self.api_url!r}")

        return errors


def _first(query: Dict[str, List[str]], key: str) -> str:
    values = query.get(key)
    return values[0] if values else ""


def parse_walker_uri(uri: str) -> WalkerConfig:
    """Parse a walker URI into a validated :class:`WalkerConfig`.

    Args:
        uri: Walker URI, see module docstring

    Returns:
        WalkerConfig

    Raises:
        ConfigurationError: If the URI is malformed or an option is invalid
    """
    try:
        parsed = urlparse(uri)
    except ValueError as e:
        raise ConfigurationError(f"Invalid walker URI: {e}") from e

    parts = parsed.path.lstrip("/").split("/")
    if len(parts) != 1:
        raise ConfigurationError(
            f"Invalid path {parsed.path!r}: expected a single repository name"
        )

    query = parse_qs(parsed.query, keep_blank_values=True)

    config = WalkerConfig(
        owner=parsed.netloc,
        repo=parts[0],
        access_token=_first(query, "access_token"),
    )

    branch = _first(query, "branch")
    if branch:
        config.branch = branch

    errors = []

    for key, attr in (("concurrent", "concurrent"), ("wait-on-reset", "wait_on_reset")):
        value = _first(query, key)
        if value:
            try:
                setattr(config, attr, parse_bool(value))
            except ValueError as e:
                errors.append(f"{key}: {e}")

    rate = _first(query, "rate")
    if rate:
        try:
            config.requests_per_second = float(rate)
        except ValueError:
            errors.append(f"rate: invalid number {rate!r}")

    max_in_flight = _first(query, "max-in-flight")
    if max_in_flight:
        try:
            config.max_in_flight = int(max_in_flight)
        except ValueError:
            errors.append(f"max-in-flight: invalid integer {max_in_flight!r}")

    api_url = _first(query, "api-url")
    if api_url:
        config.api_url = api_url.rstrip("/")

    errors.extend(config.validate())
    if errors:
        raise ConfigurationError(f"Invalid walker URI: {', '.join(errors)}")

    return config
