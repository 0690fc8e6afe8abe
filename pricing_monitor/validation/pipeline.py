# File: pricing_monitor/validation/pipeline.py
"""pricing_monitor.validation.pipeline: runs the check sequence against one rendered page."""

from __future__ import annotations

import asyncio
import time
from contextlib import suppress
from pathlib import Path
from typing import Any, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricing_monitor.config import MonitorConfig
from pricing_monitor.logger import logger
from pricing_monitor.models import CheckResult, DiscoveredUrl, PageValidationResult
from pricing_monitor.utils import belongs_to_family, extract_domain, screenshot_slug
from pricing_monitor.validation.checks import (
    Check,
    PageContext,
    default_content_checks,
    default_navigation_checks,
)

PAGE_LOAD_CHECK = "Page load"


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class ValidationPipeline:
    """Navigation, then navigation checks, then (on HTTP 200) content checks.

    ``validate`` never raises: any exception becomes a single failing
    "Page load" check on an otherwise well-formed result.
    """

    def __init__(
        self,
        config: MonitorConfig,
        navigation_checks: Optional[Sequence[Check]] = None,
        content_checks: Optional[Sequence[Check]] = None,
    ) -> None:
        self.config = config
        self.navigation_checks = list(navigation_checks or default_navigation_checks())
        self.content_checks = list(content_checks or default_content_checks())
        self._family = config.domain_family
        self._timeout_ms = config.page_load_timeout * 1000

    async def validate(self, page: Any, target: DiscoveredUrl) -> PageValidationResult:
        script_errors: List[str] = []
        self._listen(page, script_errors)
        start = time.monotonic()
        http_status = 0
        load_time_ms = 0

        try:
            response = await page.goto(target.url, wait_until="domcontentloaded", timeout=self._timeout_ms)
            load_time_ms = _elapsed_ms(start)
            http_status = response.status if response is not None else 0
            ctx = PageContext(
                url=target.url,
                http_status=http_status,
                load_time_ms=load_time_ms,
                config=self.config,
                script_errors=script_errors,
            )

            checks: List[CheckResult] = []
            errors: List[str] = []
            warnings: List[str] = []
            await self._run(self.navigation_checks, page, ctx, checks, errors, warnings)
            if http_status == 200:
                with suppress(PlaywrightTimeoutError):
                    await page.wait_for_load_state("networkidle", timeout=self._timeout_ms)
                await self._run(self.content_checks, page, ctx, checks, errors, warnings)

            screenshot = None
            if any(not c.passed for c in checks):
                screenshot = await self.capture_screenshot(page, target.url)

            result = PageValidationResult(
                url=target.url,
                domain=target.domain,
                load_time_ms=load_time_ms,
                http_status=http_status,
                checks=tuple(checks),
                errors=tuple(errors),
                warnings=tuple(warnings),
                screenshot_path=screenshot,
            )
        except Exception as exc:
            message = str(exc).strip() or type(exc).__name__
            logger.warning("Validation of %s failed: %s", target.url, message)
            return failed_result(
                target,
                message,
                http_status=http_status,
                load_time_ms=load_time_ms or _elapsed_ms(start),
                screenshot_path=await self.capture_screenshot(page, target.url),
            )

        logger.info(
            "%s %s (%d ms, HTTP %d)",
            "PASS" if result.passed else "FAIL", target.url, load_time_ms, http_status,
        )
        return result

    async def _run(
        self,
        sequence: Sequence[Check],
        page: Any,
        ctx: PageContext,
        checks: List[CheckResult],
        errors: List[str],
        warnings: List[str],
    ) -> None:
        for check in sequence:
            result = await check.execute(page, ctx)
            checks.append(result)
            if result.passed:
                continue
            message = check.failure_message(result, ctx)
            (errors if check.critical else warnings).append(message)
            logger.debug("Check %r failed for %s: %s", check.name, ctx.url, result.details)

    def _listen(self, page: Any, sink: List[str]) -> None:
        def on_page_error(error: Any) -> None:
            message = getattr(error, "message", None) or str(error)
            stack = getattr(error, "stack", None) or ""
            if self.is_first_party(f"{message}\n{stack}"):
                sink.append(message)

        def on_console(msg: Any) -> None:
            if msg.type != "error":
                return
            location = getattr(msg, "location", None) or {}
            if self.is_first_party(msg.text, location.get("url", "")):
                sink.append(f"Console error: {msg.text}")

        page.on("pageerror", on_page_error)
        page.on("console", on_console)

    def is_first_party(self, text: str, source_url: str = "") -> bool:
        """Whether a script error originates from the monitored sites rather than a third party."""
        if source_url:
            return belongs_to_family(extract_domain(source_url), self._family)
        lowered = text.lower()
        if "third-party" in lowered:
            return False
        return any(domain in lowered for domain in self._family)

    async def capture_screenshot(self, page: Any, url: str) -> Optional[str]:
        directory = Path(self.config.output.screenshots_dir)
        path = directory / f"{screenshot_slug(url)}.png"
        try:
            await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
            await page.screenshot(path=str(path), full_page=True)
        except (PlaywrightError, OSError) as exc:
            logger.warning("Screenshot of %s failed: %s", url, exc)
            return None
        logger.debug("Screenshot saved to %s", path)
        return str(path)


def failed_result(
    target: DiscoveredUrl,
    message: str,
    *,
    http_status: int = 0,
    load_time_ms: int = 0,
    screenshot_path: Optional[str] = None,
) -> PageValidationResult:
    """Result for a URL whose page could not be loaded or evaluated."""
    return PageValidationResult(
        url=target.url,
        domain=target.domain,
        load_time_ms=load_time_ms,
        http_status=http_status,
        checks=(CheckResult(name=PAGE_LOAD_CHECK, passed=False, details=message, critical=True),),
        errors=(message,),
        screenshot_path=screenshot_path,
    )


async def validate_page(page: Any, target: DiscoveredUrl, config: MonitorConfig) -> PageValidationResult:
    """Validates *target* on *page* with the default check sequence."""
    return await ValidationPipeline(config).validate(page, target)


__all__ = ["PAGE_LOAD_CHECK", "ValidationPipeline", "failed_result", "validate_page"]
