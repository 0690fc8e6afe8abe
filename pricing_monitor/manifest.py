# File: pricing_monitor/manifest.py
"""pricing_monitor.manifest: merging, deduplication and persistence of discovered URLs."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Union

from pricing_monitor.errors import ManifestError
from pricing_monitor.logger import logger
from pricing_monitor.models import DiscoveredUrl, UrlManifest, utcnow
from pricing_monitor.utils import normalize_url

MANIFEST_VERSION = "1.0.0"


def merge_urls(*collections: Iterable[DiscoveredUrl]) -> List[DiscoveredUrl]:
    """Merges URL collections keyed by the exact URL string.

    When a key appears more than once the entry with the later
    ``discovered_at`` wins. On equal timestamps the entry seen first (in
    argument order, then collection order) is kept.
    """
    merged: Dict[str, DiscoveredUrl] = {}
    for urls in collections:
        for entry in urls:
            existing = merged.get(entry.url)
            if existing is None or entry.discovered_at > existing.discovered_at:
                merged[entry.url] = entry
    return list(merged.values())


def create_manifest(urls: Iterable[DiscoveredUrl]) -> UrlManifest:
    """Builds a manifest: normalises, drops duplicates (first seen wins), sorts and counts."""
    seen: Dict[str, DiscoveredUrl] = {}
    dropped = 0
    for entry in urls:
        key = normalize_url(entry.url)
        if key in seen:
            dropped += 1
            continue
        seen[key] = entry if key == entry.url else replace(entry, url=key)
    if dropped:
        logger.debug("Dropped %d duplicate URLs while building manifest", dropped)

    unique = sorted(seen.values(), key=lambda u: u.url)
    by_domain = Counter(u.domain for u in unique)
    by_source = Counter(u.source.value for u in unique)
    return UrlManifest(
        version=MANIFEST_VERSION,
        generated_at=utcnow(),
        urls=tuple(unique),
        by_domain=dict(by_domain),
        by_source=dict(by_source),
    )


def save_manifest(manifest: UrlManifest, path: Union[str, Path]) -> Path:
    """Writes *manifest* as pretty JSON, replacing any previous file."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        json.dump(manifest.to_dict(), f, ensure_ascii=False, indent=2)

    logger.info("Manifest saved to %s (%d URLs)", output, manifest.total_urls)
    for domain, count in manifest.by_domain.items():
        logger.info("  %s: %d", domain, count)
    return output


def manifest_exists(path: Union[str, Path]) -> bool:
    return Path(path).is_file()


def load_manifest(path: Union[str, Path]) -> UrlManifest:
    """Reads a manifest written by :func:`save_manifest`."""
    source = Path(path)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Failed to load manifest from {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {source} must be a JSON object")
    try:
        return UrlManifest.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ManifestError(f"Malformed manifest {source}: {exc}") from exc


__all__ = ["MANIFEST_VERSION", "create_manifest", "load_manifest", "manifest_exists", "merge_urls", "save_manifest"]
