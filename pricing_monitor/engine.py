# File: pricing_monitor/engine.py
"""pricing_monitor.engine: Orchestration layer для обнаружения URL и проверки страниц."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from playwright.async_api import Error as PlaywrightError

from pricing_monitor.aggregator import RunSummary, summarize
from pricing_monitor.browser import BrowserSession
from pricing_monitor.config import MonitorConfig
from pricing_monitor.discovery.link_crawler import LinkCrawler
from pricing_monitor.discovery.resolver import StructureResolver
from pricing_monitor.errors import ManifestError
from pricing_monitor.logger import logger
from pricing_monitor.manifest import create_manifest, load_manifest, merge_urls, save_manifest
from pricing_monitor.models import DiscoveredUrl, PageValidationResult, UrlManifest, UrlSource
from pricing_monitor.utils import extract_domain
from pricing_monitor.validation.pipeline import ValidationPipeline, failed_result

__all__ = ["load_targets", "run_discovery", "run_validation", "validate_targets"]


async def run_discovery(
    config: MonitorConfig,
    *,
    include_link_crawl: bool = False,
    max_pages: Optional[int] = None,
    manifest_path: Union[str, Path, None] = None,
) -> UrlManifest:
    """Фаза 1: sitemap, фаза 2 (опционально): обход ссылок. Результат сохраняется в манифест."""
    logger.info("Phase 1: sitemap discovery")
    sitemap_urls = await StructureResolver(config).discover()
    all_urls: List[DiscoveredUrl] = list(sitemap_urls)

    if include_link_crawl:
        logger.info("Phase 2: link-based discovery")
        crawl_urls = await LinkCrawler(config).discover(max_pages=max_pages)
        all_urls = merge_urls(sitemap_urls, crawl_urls)

    manifest = create_manifest(all_urls)
    save_manifest(manifest, manifest_path or config.output.manifest_file)
    return manifest


def load_targets(config: MonitorConfig, manifest_path: Union[str, Path, None] = None) -> List[DiscoveredUrl]:
    """URL для проверки из манифеста; без манифеста один тестовый URL из конфига."""
    path = manifest_path or config.output.manifest_file
    try:
        manifest = load_manifest(path)
    except ManifestError as exc:
        logger.warning("No usable manifest (%s), falling back to sample URL %s", exc, config.sample_url)
        return [
            DiscoveredUrl(
                url=config.sample_url,
                source=UrlSource.SITEMAP,
                domain=extract_domain(config.sample_url),
            )
        ]
    logger.info("Loaded %d URLs from manifest %s", manifest.total_urls, path)
    return list(manifest.urls)


async def validate_targets(
    config: MonitorConfig,
    targets: Sequence[DiscoveredUrl],
    *,
    browser: Any = None,
    workers: Optional[int] = None,
    run_timeout: Optional[float] = None,
) -> List[PageValidationResult]:
    """Проверяет targets параллельно (не более workers страниц одновременно), порядок сохраняется.

    Если run_timeout истёк, незавершённые проверки отменяются, а их URL
    получают результат с ошибкой "Timeout".
    """
    if browser is None:
        async with BrowserSession(config) as session:
            return await validate_targets(
                config, targets, browser=session, workers=workers, run_timeout=run_timeout
            )

    pipeline = ValidationPipeline(config)
    semaphore = asyncio.Semaphore(workers or config.max_concurrent_tests)

    async def _one(target: DiscoveredUrl) -> PageValidationResult:
        async with semaphore:
            try:
                page = await browser.new_page()
            except Exception as exc:
                logger.warning("Could not open a page for %s: %s", target.url, exc)
                return failed_result(target, str(exc) or type(exc).__name__)
            try:
                return await pipeline.validate(page, target)
            finally:
                with suppress(PlaywrightError):
                    await page.close()

    logger.info("Validating %d URL(s) with up to %d worker(s)", len(targets), workers or config.max_concurrent_tests)
    tasks = [asyncio.create_task(_one(t)) for t in targets]
    if not tasks:
        return []
    _, pending = await asyncio.wait(tasks, timeout=run_timeout)
    if pending:
        logger.warning("Run timeout of %ss reached, %d URL(s) not validated", run_timeout, len(pending))
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    timeout_message = f"Timeout: run did not finish within {run_timeout}s"
    return [
        failed_result(target, timeout_message) if task.cancelled() else task.result()
        for target, task in zip(targets, tasks)
    ]


async def run_validation(
    config: MonitorConfig,
    *,
    manifest_path: Union[str, Path, None] = None,
    workers: Optional[int] = None,
    browser: Any = None,
    run_timeout: Optional[float] = None,
) -> RunSummary:
    targets = load_targets(config, manifest_path)
    results = await validate_targets(config, targets, browser=browser, workers=workers, run_timeout=run_timeout)
    summary = summarize(results)
    logger.info(
        "Validation complete: %d tested, %d passed, %d failed",
        summary.total_tested, summary.passed, summary.failed,
    )
    return summary
