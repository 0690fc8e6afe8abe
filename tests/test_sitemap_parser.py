# File: tests/test_sitemap_parser.py
import gzip

import pytest
from conftest import index_xml, urlset_xml

from pricing_monitor.discovery.sitemap_parser import parse_sitemap
from pricing_monitor.errors import SitemapParseError


def test_parse_urlset():
    doc = parse_sitemap(urlset_xml(["https://h.com/a/pricing.html", "https://h.com/b"], lastmod="2026-03-01"))
    assert not doc.is_index
    assert [e.loc for e in doc.entries] == ["https://h.com/a/pricing.html", "https://h.com/b"]
    assert doc.entries[0].lastmod == "2026-03-01"


def test_parse_index():
    doc = parse_sitemap(index_xml(["https://h.com/s1.xml", "https://h.com/s2.xml"]).encode())
    assert doc.is_index
    assert doc.children == ["https://h.com/s1.xml", "https://h.com/s2.xml"]
    assert doc.entries == []


def test_parse_without_namespace_and_blank_locs():
    xml = "<urlset><url><loc> https://h.com/x </loc></url><url><loc></loc></url></urlset>"
    doc = parse_sitemap(xml)
    assert [e.loc for e in doc.entries] == ["https://h.com/x"]


def test_parse_gzip():
    doc = parse_sitemap(gzip.compress(urlset_xml(["https://h.com/a"]).encode()))
    assert doc.entries[0].loc == "https://h.com/a"


@pytest.mark.parametrize("content", [b"", b"   ", "<html><body>nope</body></html>"])
def test_parse_rejects_non_sitemaps(content):
    with pytest.raises(SitemapParseError):
        parse_sitemap(content)


def test_parse_rejects_corrupt_gzip():
    corrupt = gzip.compress(urlset_xml(["https://h.com/a"]).encode())[:10] + b"\xff" * 20
    with pytest.raises(SitemapParseError, match="Invalid gzip payload"):
        parse_sitemap(corrupt)
