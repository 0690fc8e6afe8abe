# File: pricing_monitor/discovery/resolver.py
"""pricing_monitor.discovery.resolver: flattens a (nested) sitemap tree into target URLs.

Local mirrors win over the network: when ``sitemap_dir`` holds any sitemap
files, every one of them is processed and the remote list is ignored. Child
references of a locally-read index are first looked up in the same
directory by file name.
"""

from __future__ import annotations

import asyncio
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set
from urllib.parse import urlsplit

from pricing_monitor.config import MonitorConfig
from pricing_monitor.discovery.fetcher import SitemapFetcher
from pricing_monitor.discovery.sitemap_parser import SitemapDocument, parse_sitemap
from pricing_monitor.errors import DocumentFetchError, SitemapParseError
from pricing_monitor.logger import logger
from pricing_monitor.models import DiscoveredUrl, UrlSource, utcnow
from pricing_monitor.utils import chunked, extract_domain, matches_any

SITEMAP_SUFFIXES = (".xml", ".xml.gz")


@dataclass(frozen=True, slots=True)
class DocumentRef:
    """Where a structure document lives: a local file path or a remote URL."""

    location: str
    local: bool = False

    @property
    def key(self) -> str:
        return self.location


@dataclass(slots=True)
class ResolutionState:
    """Accumulator threaded through one resolution run."""

    visited: Set[str] = field(default_factory=set)
    discovered: Dict[str, DiscoveredUrl] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)


def list_local_sitemaps(directory: Optional[Path]) -> List[Path]:
    """Sitemap files in *directory*, alphabetical; empty if the directory is absent."""
    if directory is None or not directory.is_dir():
        return []
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and p.name.lower().endswith(SITEMAP_SUFFIXES)),
        key=lambda p: p.name,
    )


class StructureResolver:
    """Resolves configured sitemaps into DiscoveredUrl entries (source=sitemap)."""

    def __init__(self, config: MonitorConfig, fetcher: Optional[SitemapFetcher] = None) -> None:
        self.config = config
        self._fetcher = fetcher
        self._patterns = config.target_regexes
        self._batch_size = config.max_concurrent_discovery

    async def discover(self, state: Optional[ResolutionState] = None) -> List[DiscoveredUrl]:
        state = state if state is not None else ResolutionState()
        local = list_local_sitemaps(self.config.sitemap_dir)
        if local:
            logger.info("Using %d local sitemap(s) from %s", len(local), self.config.sitemap_dir)
            roots = [DocumentRef(str(p), local=True) for p in local]
        else:
            logger.info("Fetching %d remote sitemap(s)", len(self.config.sitemap_urls))
            roots = [DocumentRef(u) for u in self.config.sitemap_urls]

        if self._fetcher is not None:
            await self._resolve_roots(roots, self._fetcher, state)
        else:
            async with SitemapFetcher(self.config) as fetcher:
                await self._resolve_roots(roots, fetcher, state)

        urls = list(state.discovered.values())
        logger.info(
            "Sitemap discovery complete: %d target URLs from %d document(s), %d failed",
            len(urls), len(state.visited), len(state.failed),
        )
        return urls

    async def _resolve_roots(
        self, roots: Sequence[DocumentRef], fetcher: SitemapFetcher, state: ResolutionState
    ) -> None:
        for ref in roots:
            logger.info("Processing sitemap: %s", ref.location)
            await self.resolve(ref, fetcher, state)

    async def resolve(self, ref: DocumentRef, fetcher: SitemapFetcher, state: ResolutionState) -> None:
        """Processes one document and, for an index, its children. Never raises for document errors."""
        if ref.key in state.visited:
            return
        state.visited.add(ref.key)

        try:
            content = await self._load(ref, fetcher)
            document = parse_sitemap(content)
        except (DocumentFetchError, SitemapParseError, OSError) as exc:
            logger.warning("Skipping sitemap %s: %s", ref.location, exc)
            state.failed.append(ref.location)
            return

        if document.is_index:
            await self._resolve_index(document, ref, fetcher, state)
        else:
            self._collect_entries(document, ref, state)

    async def _load(self, ref: DocumentRef, fetcher: SitemapFetcher) -> bytes:
        if ref.local:
            return await asyncio.to_thread(Path(ref.location).read_bytes)
        return await fetcher.fetch(ref.location)

    async def _resolve_index(
        self,
        document: SitemapDocument,
        parent: DocumentRef,
        fetcher: SitemapFetcher,
        state: ResolutionState,
    ) -> None:
        logger.info("Sitemap index %s lists %d child sitemap(s)", parent.location, len(document.children))
        children = [self._child_ref(loc, parent) for loc in document.children]
        # each batch completes before the next one starts
        for batch in chunked(children, self._batch_size):
            await asyncio.gather(*(self.resolve(child, fetcher, state) for child in batch))

    def _child_ref(self, loc: str, parent: DocumentRef) -> DocumentRef:
        if parent.local:
            directory = Path(parent.location).parent
            name = posixpath.basename(urlsplit(loc).path)
            candidate = directory / name if name else None
            if candidate is not None and candidate.is_file():
                logger.debug("Child sitemap %s resolved locally as %s", loc, candidate)
                return DocumentRef(str(candidate), local=True)
        return DocumentRef(loc)

    def _collect_entries(self, document: SitemapDocument, ref: DocumentRef, state: ResolutionState) -> None:
        found = 0
        for entry in document.entries:
            if not matches_any(entry.loc, self._patterns):
                continue
            # last processed wins
            state.discovered[entry.loc] = DiscoveredUrl(
                url=entry.loc,
                source=UrlSource.SITEMAP,
                domain=extract_domain(entry.loc),
                last_modified=entry.lastmod,
                discovered_at=utcnow(),
            )
            found += 1
        if found:
            logger.info("Found %d target URL(s) in %s", found, ref.location)


__all__ = ["DocumentRef", "ResolutionState", "StructureResolver", "list_local_sitemaps"]
