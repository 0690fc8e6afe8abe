# pricing_monitor/browser.py
"""
Page renderers.

BrowserSession drives headless Chromium through the Playwright async API and
is what validation uses. HttpRenderer fetches static HTML with aiohttp and
can stand in for the browser during link crawling.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Protocol, Union

from aiohttp import ClientError, ClientSession, ClientTimeout
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from pricing_monitor.config import MonitorConfig
from pricing_monitor.logger import logger


class Renderer(Protocol):
    """Anything that can turn a URL into rendered HTML."""

    async def render(self, url: str) -> str: ...


class BrowserSession:
    """One headless browser and one context for the lifetime of a run."""

    def __init__(self, config: MonitorConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> BrowserSession:
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
            self._context = await self._browser.new_context(
                user_agent=self.config.user_agent,
                viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
            )
        except Exception:
            await self.__aexit__(None, None, None)
            raise
        logger.debug("Browser started (headless=%s)", self.config.headless)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def new_page(self) -> Page:
        if self._context is None:
            raise RuntimeError("Browser session not started")
        page = await self._context.new_page()
        page.set_default_timeout(self.config.page_load_timeout * 1000)
        return page

    async def render(self, url: str) -> str:
        page = await self.new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.config.page_load_timeout * 1000)
            return await page.content()
        finally:
            await page.close()


class HttpRenderer:
    """Static HTML renderer backed by aiohttp; no script execution."""

    def __init__(self, config: MonitorConfig) -> None:
        self.config = config
        self.session: Optional[ClientSession] = None

    async def __aenter__(self) -> HttpRenderer:
        self.session = ClientSession(
            timeout=ClientTimeout(total=self.config.page_load_timeout),
            headers={"User-Agent": self.config.user_agent},
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def render(self, url: str) -> str:
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url) as resp:
                if resp.status != 200:
                    raise ClientError(f"HTTP {resp.status} for {url}")
                return await resp.text(errors="replace")
        except asyncio.TimeoutError as exc:
            raise ClientError(f"timeout loading {url}") from exc


def open_renderer(config: MonitorConfig) -> Union[BrowserSession, HttpRenderer]:
    """Returns the renderer selected by ``crawl.renderer`` (not yet entered)."""
    if config.crawl.renderer == "http":
        return HttpRenderer(config)
    return BrowserSession(config)


__all__ = ["BrowserSession", "HttpRenderer", "Renderer", "open_renderer"]
