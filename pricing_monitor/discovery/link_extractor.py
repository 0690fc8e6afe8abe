# pricing_monitor/discovery/link_extractor.py
"""
Link extraction from rendered HTML.
"""
from __future__ import annotations

from typing import Dict, List
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from pricing_monitor.logger import logger

_SKIP_SCHEMES = ("mailto:", "javascript:", "tel:", "data:")


def extract_links(html: str, base_url: str) -> List[str]:
    """
    Extract absolute HTTP(S) links from *html*, resolved against *base_url*.

    Order of first appearance is kept, fragments are dropped and duplicates removed.
    Hrefs that do not parse as URLs are skipped.
    Host filtering is left to the caller.
    """
    soup = BeautifulSoup(html, "html.parser")
    links: Dict[str, None] = {}
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.lower().startswith(_SKIP_SCHEMES):
            continue
        try:
            absolute, _ = urldefrag(urljoin(base_url, raw))
            scheme = urlparse(absolute).scheme
        except ValueError:
            logger.debug("Skipping malformed link %r on %s", raw, base_url)
            continue
        if scheme in ("http", "https"):
            links.setdefault(absolute, None)
    return list(links)


__all__ = ["extract_links"]
