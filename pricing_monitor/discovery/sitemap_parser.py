# File: pricing_monitor/discovery/sitemap_parser.py
"""pricing_monitor.discovery.sitemap_parser: разбор sitemap index и urlset."""

from __future__ import annotations

import gzip
import zlib
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Union

from lxml import etree

from pricing_monitor.errors import SitemapParseError

_GZIP_MAGIC = b"\x1f\x8b"


@dataclass(frozen=True, slots=True)
class SitemapEntry:
    """Одна запись <url> из urlset."""

    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SitemapDocument:
    """Index (ссылки на дочерние sitemap) или urlset (конечные URL)."""

    kind: Literal["index", "urlset"]
    children: List[str] = field(default_factory=list)
    entries: List[SitemapEntry] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return self.kind == "index"


def _text(node: etree._Element, tag: str) -> Optional[str]:
    child = node.find(f"{{*}}{tag}")
    if child is None or child.text is None:
        return None
    value = child.text.strip()
    return value or None


def parse_sitemap(content: Union[bytes, str]) -> SitemapDocument:
    """Разбирает содержимое sitemap и возвращает SitemapDocument.

    Args:
        content: байты или строка sitemap; gzip распаковывается автоматически.

    Raises:
        SitemapParseError: пустой документ, битый XML или неизвестный корневой тег.

    Пример:
    ```python
    from pricing_monitor.discovery.sitemap_parser import parse_sitemap

    with open('sitemap.xml', 'rb') as f:
        doc = parse_sitemap(f.read())
    print(doc.kind, len(doc.entries))
    ```
    """
    raw = content.encode("utf-8") if isinstance(content, str) else content
    if raw.startswith(_GZIP_MAGIC):
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError, zlib.error) as exc:
            raise SitemapParseError(f"Invalid gzip payload: {exc}") from exc
    if not raw.strip():
        raise SitemapParseError("Empty sitemap document")

    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(raw, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise SitemapParseError(f"Invalid XML: {exc}") from exc
    if root is None:
        raise SitemapParseError("Unparseable sitemap document")

    tag = etree.QName(root).localname
    if tag == "sitemapindex":
        children = [loc for loc in (_text(s, "loc") for s in root.findall("{*}sitemap")) if loc]
        return SitemapDocument(kind="index", children=children)
    if tag == "urlset":
        entries: List[SitemapEntry] = []
        for node in root.findall("{*}url"):
            loc = _text(node, "loc")
            if not loc:
                continue
            entries.append(
                SitemapEntry(
                    loc=loc,
                    lastmod=_text(node, "lastmod"),
                    changefreq=_text(node, "changefreq"),
                    priority=_text(node, "priority"),
                )
            )
        return SitemapDocument(kind="urlset", entries=entries)
    raise SitemapParseError(f"Unrecognised root element <{tag}>")


__all__ = ["SitemapDocument", "SitemapEntry", "parse_sitemap"]
