# pricing_monitor/models.py
"""
Data models shared by discovery, validation and reporting.

All records are frozen: a newer discovery of the same URL supersedes an
entry instead of mutating it, and a validation result is built once per URL
per run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class UrlSource(str, Enum):
    SITEMAP = "sitemap"
    CRAWL = "crawl"


@dataclass(frozen=True, slots=True)
class DiscoveredUrl:
    """A target URL found by one of the discovery sources."""

    url: str
    source: UrlSource
    domain: str
    last_modified: Optional[str] = None
    discovered_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "source": self.source.value,
            "domain": self.domain,
            "last_modified": self.last_modified,
            "discovered_at": self.discovered_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DiscoveredUrl:
        return cls(
            url=data["url"],
            source=UrlSource(data["source"]),
            domain=data["domain"],
            last_modified=data.get("last_modified"),
            discovered_at=_parse_timestamp(data["discovered_at"]),
        )


@dataclass(frozen=True, slots=True)
class UrlManifest:
    """Deduplicated, sorted hand-off between discovery and validation."""

    version: str
    generated_at: datetime
    urls: Tuple[DiscoveredUrl, ...]
    by_domain: Dict[str, int]
    by_source: Dict[str, int]

    @property
    def total_urls(self) -> int:
        return len(self.urls)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generated_at": self.generated_at.isoformat(),
            "total_urls": self.total_urls,
            "by_domain": dict(self.by_domain),
            "by_source": dict(self.by_source),
            "urls": [u.to_dict() for u in self.urls],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> UrlManifest:
        return cls(
            version=str(data.get("version", "")),
            generated_at=_parse_timestamp(data["generated_at"]),
            urls=tuple(DiscoveredUrl.from_dict(u) for u in data["urls"]),
            by_domain=dict(data.get("by_domain", {})),
            by_source=dict(data.get("by_source", {})),
        )


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of one validation check."""

    name: str
    passed: bool
    details: Optional[str] = None
    critical: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "details": self.details,
            "critical": self.critical,
        }


@dataclass(frozen=True, slots=True)
class PageValidationResult:
    """Validation outcome for one URL. ``passed`` is derived from the critical checks."""

    url: str
    domain: str
    load_time_ms: int
    http_status: int
    checks: Tuple[CheckResult, ...]
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    screenshot_path: Optional[str] = None
    tested_at: datetime = field(default_factory=utcnow)

    @property
    def passed(self) -> bool:
        return bool(self.checks) and all(c.passed for c in self.checks if c.critical)

    @property
    def has_failures(self) -> bool:
        return any(not c.passed for c in self.checks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "domain": self.domain,
            "passed": self.passed,
            "load_time_ms": self.load_time_ms,
            "http_status": self.http_status,
            "checks": [c.to_dict() for c in self.checks],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "screenshot_path": self.screenshot_path,
            "tested_at": self.tested_at.isoformat(),
        }


__all__ = [
    "CheckResult",
    "DiscoveredUrl",
    "PageValidationResult",
    "UrlManifest",
    "UrlSource",
    "utcnow",
]
