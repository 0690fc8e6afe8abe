# File: pricing_monitor/errors.py
"""pricing_monitor.errors: exceptions raised at discovery and validation seams."""

from __future__ import annotations

from typing import Optional


class PricingMonitorError(Exception):
    """Base class for all project errors."""


class DocumentFetchError(PricingMonitorError):
    """A structure document could not be fetched (network error or non-2xx)."""

    def __init__(self, location: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{location}: {message}")
        self.location = location
        self.status = status


class SitemapParseError(PricingMonitorError):
    """A structure document is not a recognised sitemap index or urlset."""


class ManifestError(PricingMonitorError):
    """The URL manifest is missing, unreadable or malformed."""


__all__ = ["PricingMonitorError", "DocumentFetchError", "SitemapParseError", "ManifestError"]
