# File: pricing_monitor/utils.py
"""pricing_monitor.utils: URL canonicalisation and small helpers shared by discovery and validation."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Sequence, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pricing_monitor.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "extract_domain",
    "belongs_to_family",
    "matches_any",
    "screenshot_slug",
    "chunked",
)

_T = TypeVar("_T")

_DEFAULT_PORTS = {"http": 80, "https": 443}
_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9]")


def normalize_url(url: str) -> str:
    """Canonical identity of *url*.

    Strips one trailing ``/`` from non-root paths, drops an explicit default
    port and sorts query parameters by key. Anything that does not parse as
    an absolute URL is returned unchanged.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url

    netloc = parts.netloc
    if port is not None and _DEFAULT_PORTS.get(parts.scheme.lower()) == port:
        netloc = netloc.rsplit(":", 1)[0]

    path = parts.path
    if path != "/" and path.endswith("/"):
        path = path[:-1]

    query = parts.query
    if query:
        params = parse_qsl(query, keep_blank_values=True)
        # stable: equal keys keep their relative order
        params.sort(key=lambda kv: kv[0])
        query = urlencode(params)

    normalized = urlunsplit((parts.scheme, netloc, path, query, parts.fragment))
    if normalized != url:
        logger.debug("Normalized URL: %s -> %s", url, normalized)
    return normalized


def extract_domain(url: str) -> str:
    """Returns the hostname of *url* (lower-cased), or an empty string."""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def belongs_to_family(host: str, family: Iterable[str]) -> bool:
    """True if *host* equals a family domain or is one of its subdomains."""
    host = host.lower().rstrip(".")
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in family)


def matches_any(url: str, patterns: Iterable[re.Pattern[str]]) -> bool:
    return any(p.search(url) for p in patterns)


def screenshot_slug(url: str, max_length: int = 100) -> str:
    """Filesystem-safe name for a page screenshot."""
    return _UNSAFE_RE.sub("_", _SCHEME_RE.sub("", url))[:max_length]


def chunked(items: Sequence[_T], size: int) -> Iterator[List[_T]]:
    """Splits *items* into consecutive batches of at most *size* elements."""
    if size < 1:
        raise ValueError("size must be >= 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])
