# File: pricing_monitor/discovery/__init__.py
"""pricing_monitor.discovery: sitemap resolution and link crawling."""

from .link_crawler import CrawlState, LinkCrawler
from .resolver import DocumentRef, ResolutionState, StructureResolver

__all__ = ["CrawlState", "DocumentRef", "LinkCrawler", "ResolutionState", "StructureResolver"]
