# File: tests/test_manifest.py
import json
from datetime import datetime, timedelta, timezone

import pytest

from pricing_monitor.errors import ManifestError
from pricing_monitor.manifest import (
    MANIFEST_VERSION,
    create_manifest,
    load_manifest,
    manifest_exists,
    merge_urls,
    save_manifest,
)
from pricing_monitor.models import DiscoveredUrl, UrlSource

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
BASE = "https://www.example-cruises.com/cruises"


def _url(path: str, source=UrlSource.SITEMAP, at=T0, domain="www.example-cruises.com") -> DiscoveredUrl:
    return DiscoveredUrl(url=f"{BASE}/{path}", source=source, domain=domain, discovered_at=at)


def test_merge_later_discovery_wins():
    old = _url("a/pricing.html", at=T0)
    new = _url("a/pricing.html", source=UrlSource.CRAWL, at=T0 + timedelta(minutes=5))
    for merged in (merge_urls([old], [new]), merge_urls([new], [old])):
        assert merged == [new]


def test_merge_tie_keeps_first_seen():
    first = _url("a/pricing.html")
    second = _url("a/pricing.html", source=UrlSource.CRAWL)
    assert merge_urls([first], [second]) == [first]


def test_merge_is_commutative_on_url_set():
    a = [_url("a/pricing.html"), _url("b/pricing.html")]
    b = [_url("b/pricing.html", source=UrlSource.CRAWL), _url("c/pricing.html", source=UrlSource.CRAWL)]
    left = {u.url for u in merge_urls(a, b)}
    right = {u.url for u in merge_urls(b, a)}
    assert left == right == {f"{BASE}/{p}/pricing.html" for p in "abc"}


def test_merge_exact_key_keeps_variants():
    merged = merge_urls([_url("a/pricing.html")], [_url("a/pricing.html/")])
    assert len(merged) == 2


def test_create_manifest_normalises_dedups_and_sorts():
    urls = [
        _url("z/pricing.html"),
        _url("a/pricing.html/", source=UrlSource.CRAWL),
        _url("a/pricing.html"),
        DiscoveredUrl(
            url="https://www.example-oceancruises.com/m/pricing.html",
            source=UrlSource.SITEMAP,
            domain="www.example-oceancruises.com",
        ),
    ]
    manifest = create_manifest(urls)

    assert manifest.version == MANIFEST_VERSION
    assert [u.url for u in manifest.urls] == sorted(u.url for u in manifest.urls)
    assert manifest.total_urls == 3
    first = next(u for u in manifest.urls if u.url == f"{BASE}/a/pricing.html")
    assert first.source is UrlSource.CRAWL
    assert manifest.by_domain == {"www.example-cruises.com": 2, "www.example-oceancruises.com": 1}
    assert manifest.by_source == {"sitemap": 2, "crawl": 1}
    assert sum(manifest.by_domain.values()) == manifest.total_urls


def test_create_manifest_keeps_trailing_slash_and_query_variants_distinct():
    manifest = create_manifest([_url("x/pricing.html/"), _url("x/pricing.html?b=2&a=1")])
    assert manifest.total_urls == 2
    assert [u.url for u in manifest.urls] == [f"{BASE}/x/pricing.html", f"{BASE}/x/pricing.html?a=1&b=2"]


def test_create_manifest_empty():
    manifest = create_manifest([])
    assert manifest.total_urls == 0
    assert manifest.by_domain == {}
    assert manifest.by_source == {}


def test_save_and_load_roundtrip(tmp_path):
    manifest = create_manifest([_url("a/pricing.html"), _url("b/pricing.html", source=UrlSource.CRAWL)])
    path = save_manifest(manifest, tmp_path / "out" / "manifest.json")

    assert manifest_exists(path)
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["total_urls"] == 2
    assert raw["urls"][1]["source"] == "crawl"

    loaded = load_manifest(path)
    assert loaded.urls == manifest.urls
    assert loaded.by_source == manifest.by_source


def test_save_overwrites_previous(tmp_path):
    path = tmp_path / "manifest.json"
    save_manifest(create_manifest([_url("a/pricing.html"), _url("b/pricing.html")]), path)
    save_manifest(create_manifest([_url("c/pricing.html")]), path)
    assert load_manifest(path).total_urls == 1


def test_load_missing_or_malformed(tmp_path):
    assert not manifest_exists(tmp_path / "nope.json")
    with pytest.raises(ManifestError):
        load_manifest(tmp_path / "nope.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ManifestError):
        load_manifest(broken)

    wrong = tmp_path / "wrong.json"
    wrong.write_text(json.dumps({"version": "1.0.0"}), encoding="utf-8")
    with pytest.raises(ManifestError):
        load_manifest(wrong)
