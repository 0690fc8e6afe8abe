# File: pricing_monitor/discovery/link_crawler.py
"""pricing_monitor.discovery.link_crawler: finds target URLs by following links from seed pages.

Seeds are crawled one after another. Within a seed the traversal is a BFS
over an explicit ``(url, depth)`` queue drained by ``crawl.concurrency``
workers. The visited-set is shared by all seeds and keyed by the normalised
URL, the same identity the manifest uses.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from aiohttp import ClientError
from playwright.async_api import Error as PlaywrightError

from pricing_monitor.browser import Renderer, open_renderer
from pricing_monitor.config import MonitorConfig
from pricing_monitor.discovery.link_extractor import extract_links
from pricing_monitor.logger import logger
from pricing_monitor.models import DiscoveredUrl, UrlSource, utcnow
from pricing_monitor.utils import belongs_to_family, extract_domain, matches_any, normalize_url

_QueueItem = Tuple[str, int]


@dataclass(frozen=True, slots=True)
class CrawlLimits:
    max_pages: int
    max_depth: int


@dataclass(slots=True)
class CrawlState:
    """Accumulator shared by every seed of one crawl run."""

    visited: Set[str] = field(default_factory=set)
    discovered: Dict[str, DiscoveredUrl] = field(default_factory=dict)
    rendered: int = 0
    failed: List[str] = field(default_factory=list)


class LinkCrawler:
    """Bounded link-following discovery (source=crawl)."""

    def __init__(self, config: MonitorConfig, renderer: Optional[Renderer] = None) -> None:
        self.config = config
        self._renderer = renderer
        self._family = config.domain_family
        self._targets = config.target_regexes
        self._follow = config.follow_regexes

    async def discover(
        self,
        *,
        max_pages: Optional[int] = None,
        max_depth: Optional[int] = None,
        state: Optional[CrawlState] = None,
    ) -> List[DiscoveredUrl]:
        limits = CrawlLimits(
            max_pages=max_pages if max_pages is not None else self.config.crawl.max_pages,
            max_depth=max_depth if max_depth is not None else self.config.crawl.max_depth,
        )
        state = state if state is not None else CrawlState()
        logger.info(
            "Starting link crawl from %d seed(s) (max_pages=%d, max_depth=%d)",
            len(self.config.seed_urls), limits.max_pages, limits.max_depth,
        )

        if self._renderer is not None:
            await self._crawl_seeds(self._renderer, state, limits)
        else:
            async with open_renderer(self.config) as renderer:
                await self._crawl_seeds(renderer, state, limits)

        urls = list(state.discovered.values())
        logger.info(
            "Link crawl complete: %d target URLs, %d pages visited, %d rendered, %d failed",
            len(urls), len(state.visited), state.rendered, len(state.failed),
        )
        return urls

    async def _crawl_seeds(self, renderer: Renderer, state: CrawlState, limits: CrawlLimits) -> None:
        for seed in self.config.seed_urls:
            if len(state.visited) >= limits.max_pages:
                logger.info("Page budget of %d exhausted, skipping remaining seeds", limits.max_pages)
                break
            logger.info("Crawling from seed: %s", seed)
            await self.crawl_seed(seed, renderer, state, limits)

    async def crawl_seed(self, seed: str, renderer: Renderer, state: CrawlState, limits: CrawlLimits) -> None:
        queue: asyncio.Queue[_QueueItem] = asyncio.Queue()
        await queue.put((seed, 0))
        workers = [
            asyncio.create_task(self._worker(queue, renderer, state, limits))
            for _ in range(self.config.crawl.concurrency)
        ]
        await queue.join()
        for w in workers:
            w.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(
        self,
        queue: asyncio.Queue[_QueueItem],
        renderer: Renderer,
        state: CrawlState,
        limits: CrawlLimits,
    ) -> None:
        while True:
            url, depth = await queue.get()
            try:
                await self._visit(url, depth, queue, renderer, state, limits)
            except Exception as exc:
                # one bad page never ends the worker
                logger.warning("Crawl of %s failed: %s", url, exc)
                state.failed.append(url)
            finally:
                queue.task_done()

    async def _visit(
        self,
        url: str,
        depth: int,
        queue: asyncio.Queue[_QueueItem],
        renderer: Renderer,
        state: CrawlState,
        limits: CrawlLimits,
    ) -> None:
        key = normalize_url(url)
        if key in state.visited or len(state.visited) >= limits.max_pages:
            return
        if not self.in_family(url):
            logger.debug("Outside domain family, skipping %s", url)
            return
        state.visited.add(key)

        if self.is_target(url):
            self._record(url, state)
            return
        if depth >= limits.max_depth:
            return

        try:
            html = await renderer.render(url)
        except (PlaywrightError, ClientError, asyncio.TimeoutError, OSError) as exc:
            logger.warning("Could not load %s: %s", url, exc)
            state.failed.append(url)
            return
        state.rendered += 1

        for link in extract_links(html, url):
            if len(state.visited) >= limits.max_pages:
                break
            if not self.in_family(link):
                continue
            if self.is_target(link):
                self._record(link, state)
            elif self.should_follow(link, depth, limits.max_depth):
                await queue.put((link, depth + 1))

    def is_target(self, url: str) -> bool:
        return matches_any(url, self._targets)

    def in_family(self, url: str) -> bool:
        return belongs_to_family(extract_domain(url), self._family)

    def should_follow(self, url: str, depth: int, max_depth: int) -> bool:
        """Follow only paths that look like they lead to targets, while depth budget remains."""
        if depth + 1 >= max_depth:
            return False
        return matches_any(url, self._follow)

    @staticmethod
    def _record(url: str, state: CrawlState) -> None:
        if url in state.discovered:
            return
        state.discovered[url] = DiscoveredUrl(
            url=url,
            source=UrlSource.CRAWL,
            domain=extract_domain(url),
            discovered_at=utcnow(),
        )
        logger.info("Found target URL: %s", url)


__all__ = ["CrawlLimits", "CrawlState", "LinkCrawler"]
