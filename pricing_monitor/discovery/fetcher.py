# pricing_monitor/discovery/fetcher.py
"""
Fetcher module: downloads remote structure documents over HTTP with a bounded timeout.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from pricing_monitor.config import MonitorConfig
from pricing_monitor.errors import DocumentFetchError
from pricing_monitor.logger import logger

SITEMAP_ACCEPT = "application/xml, text/xml, */*"


class SitemapFetcher:
    """Async context manager around one aiohttp session used for sitemap downloads."""

    def __init__(self, config: MonitorConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> SitemapFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.request_timeout),
                headers={"User-Agent": self.config.user_agent, "Accept": SITEMAP_ACCEPT},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> bytes:
        """
        GET *url* and return the raw body.

        Raises DocumentFetchError on network failure, timeout or a non-2xx status.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url) as resp:
                if not 200 <= resp.status < 300:
                    raise DocumentFetchError(url, f"HTTP {resp.status}", status=resp.status)
                body = await resp.read()
        except asyncio.TimeoutError as exc:
            raise DocumentFetchError(url, f"timeout after {self.config.request_timeout}s") from exc
        except ClientError as exc:
            raise DocumentFetchError(url, str(exc) or type(exc).__name__) from exc
        logger.debug("Fetched %s (%d bytes)", url, len(body))
        return body


__all__ = ["SITEMAP_ACCEPT", "SitemapFetcher"]
