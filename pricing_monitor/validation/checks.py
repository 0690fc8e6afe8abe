# File: pricing_monitor/validation/checks.py
"""pricing_monitor.validation.checks: the individual page checks.

Every check implements the same interface, ``execute(page, ctx)``, and carries
a static ``critical`` flag. Only critical failures make a page fail; the rest
are surfaced as warnings. Checks read the page through the Playwright
``Page`` API (``locator``, ``get_by_text``, ``text_content``).
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, List, Optional, Sequence, Tuple

from pricing_monitor.config import MonitorConfig
from pricing_monitor.models import CheckResult


UNAVAILABLE_SELECTORS: Tuple[str, ...] = (
    '[data-testid*="unavailable"]',
    '[class*="unavailable"]',
    '[class*="no-availability"]',
    '[class*="sold-out"]',
)
UNAVAILABLE_TEXT: Tuple[re.Pattern[str], ...] = (
    re.compile(r"no (?:availability|sailings? available|departures? available)", re.I),
    re.compile(r"currently unavailable", re.I),
    re.compile(r"not available for (?:booking|sale)", re.I),
    re.compile(r"no longer available", re.I),
    re.compile(r"\bsold out\b", re.I),
)

DATE_SELECTORS: Tuple[str, ...] = (
    '[data-testid*="date"]',
    '[class*="departure"]',
    '[class*="date"]',
    ".sailing-date",
    ".departure-date",
    "time",
    "[datetime]",
)
_MONTHS_SHORT = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
_MONTHS_LONG = r"(?:January|February|March|April|May|June|July|August|September|October|November|December)"
DATE_TEXT: Tuple[re.Pattern[str], ...] = (
    re.compile(rf"\b{_MONTHS_SHORT}\s+\d{{1,2}}\b", re.I),
    re.compile(rf"\b\d{{1,2}}\s+{_MONTHS_SHORT}", re.I),
    re.compile(rf"\b{_MONTHS_LONG}\s+\d{{1,2}}\b", re.I),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b"),
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
)

PRICE_SELECTORS: Tuple[str, ...] = (
    '[data-testid*="price"]',
    '[class*="price"]',
    ".cost",
    ".fare",
    ".rate",
)
# "$4,995", "£1,200.00", "US$ 3,499", "AUD$2,100", "€ 999", and "From$4,995" where
# textContent joins adjacent text nodes without a separator
PRICE_RE = re.compile(r"(?:\b[A-Z]{2,3})?[$€£¥₹]\s?\d[\d,]*(?:\.\d{1,2})?")
_NON_NUMERIC = re.compile(r"[^\d.]")

CATEGORY_SELECTORS: Tuple[str, ...] = (
    '[class*="stateroom"]',
    '[class*="cabin"]',
    '[class*="category"]',
    '[class*="accommodation"]',
    '[data-testid*="stateroom"]',
    '[data-testid*="cabin"]',
)
CATEGORY_KEYWORDS: Tuple[str, ...] = (
    "veranda",
    "balcony",
    "suite",
    "penthouse",
    "explorer",
    "deluxe",
    "standard",
    "category",
    "stateroom",
    "cabin",
)

CTA_TAGS = "a, button"
CTA_WORDS = re.compile(r"\b(?:request (?:a )?quote|book|reserve)", re.I)
CTA_SELECTORS: Tuple[str, ...] = (
    '[data-testid*="cta"]',
    '[class*="cta"]',
    '[class*="book-now"]',
    '[class*="request-quote"]',
)


@dataclass(slots=True)
class PageContext:
    """What the pipeline knows about a page once navigation returned."""

    url: str
    http_status: int
    load_time_ms: int
    config: MonitorConfig
    script_errors: List[str] = field(default_factory=list)


def parse_price(text: str) -> float:
    """Numeric value of a price string such as ``"US$ 3,499.00"``; 0.0 if unparseable."""
    digits = _NON_NUMERIC.sub("", text)
    try:
        return float(digits)
    except ValueError:
        return 0.0


def first_valid_price(text: str) -> Optional[str]:
    for match in PRICE_RE.finditer(text):
        if parse_price(match.group()) > 0:
            return match.group()
    return None


async def body_text(page: Any) -> str:
    return await page.text_content("body") or ""


async def _first_visible(locator: Any) -> Optional[str]:
    """Text of the first visible element of *locator* (empty string if it has none), else None.

    Every match is inspected; a visible element may follow any number of hidden ones.
    """
    count = await locator.count()
    for i in range(count):
        element = locator.nth(i)
        if await element.is_visible():
            return (await element.text_content() or "").strip()
    return None


class Check(ABC):
    """One validation step."""

    name: ClassVar[str]
    critical: ClassVar[bool] = False

    @abstractmethod
    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        ...

    @abstractmethod
    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        ...

    def _result(self, passed: bool, details: Optional[str] = None) -> CheckResult:
        return CheckResult(name=self.name, passed=passed, details=details, critical=self.critical)


class HttpStatusCheck(Check):
    name = "HTTP Status 200"
    critical = True

    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        return self._result(ctx.http_status == 200, f"Status: {ctx.http_status}")

    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        return f"HTTP {ctx.http_status}"


class LoadTimeCheck(Check):
    name = "Load time under threshold"

    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        threshold = ctx.config.load_time_threshold_ms
        return self._result(ctx.load_time_ms < threshold, f"{ctx.load_time_ms}ms (threshold {threshold}ms)")

    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        return f"Slow load: {ctx.load_time_ms}ms"


class UnavailabilityCheck(Check):
    """Fails when an unavailability panel or message is rendered visible."""

    name = "No unavailability message"
    critical = True

    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        for selector in UNAVAILABLE_SELECTORS:
            text = await _first_visible(page.locator(selector))
            if text is not None:
                return self._result(False, text[:120] or selector)
        for pattern in UNAVAILABLE_TEXT:
            text = await _first_visible(page.get_by_text(pattern))
            if text is not None:
                return self._result(False, text[:120] or pattern.pattern)
        return self._result(True, "No visible unavailability message")

    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        return f"Unavailable panel visible: {result.details}"


class DepartureDatesCheck(Check):
    name = "Departure dates visible"
    critical = True

    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        for selector in DATE_SELECTORS:
            count = await page.locator(selector).count()
            if count > 0:
                return self._result(True, f"Found {count} date elements")
        text = await body_text(page)
        for pattern in DATE_TEXT:
            match = pattern.search(text)
            if match:
                return self._result(True, f"Found date in page text: {match.group()}")
        return self._result(False, "No departure dates found")

    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        return "No departure dates found"


class PriceCheck(Check):
    """At least one currency amount greater than zero, in a price element or anywhere in the text."""

    name = "Valid prices present"
    critical = True

    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        for selector in PRICE_SELECTORS:
            for text in await page.locator(selector).all_text_contents():
                price = first_valid_price(text)
                if price:
                    return self._result(True, f"Found price: {price}")
        price = first_valid_price(await body_text(page))
        if price:
            return self._result(True, f"Found price: {price}")
        return self._result(False, "No valid prices found (all zero or empty)")

    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        return "No valid prices found"


class CategoryCheck(Check):
    name = "Stateroom categories displayed"

    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        for selector in CATEGORY_SELECTORS:
            count = await page.locator(selector).count()
            if count > 0:
                return self._result(True, f"Found {count} category elements")
        text = (await body_text(page)).lower()
        for keyword in CATEGORY_KEYWORDS:
            if keyword in text:
                return self._result(True, f"Found keyword: {keyword}")
        return self._result(False, "No stateroom categories found")

    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        return "No stateroom categories found"


class CtaCheck(Check):
    name = "Booking CTA exists"

    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        for text in await page.locator(CTA_TAGS).all_text_contents():
            if CTA_WORDS.search(text):
                return self._result(True, f'Found CTA: "{text.strip()}"')
        for selector in CTA_SELECTORS:
            count = await page.locator(selector).count()
            if count > 0:
                return self._result(True, f"Found {count} CTA elements ({selector})")
        return self._result(False, "No booking CTA found")

    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        return "No booking CTA found"


class ScriptErrorCheck(Check):
    """Only errors attributed to the site's own domains are collected into ``ctx.script_errors``."""

    name = "No site JS errors"

    async def execute(self, page: Any, ctx: PageContext) -> CheckResult:
        if ctx.script_errors:
            return self._result(False, f"{len(ctx.script_errors)} errors")
        return self._result(True, "Clean")

    def failure_message(self, result: CheckResult, ctx: PageContext) -> str:
        return f"JS errors: {'; '.join(ctx.script_errors)}"


NAVIGATION_CHECKS: Sequence[type[Check]] = (HttpStatusCheck, LoadTimeCheck)
CONTENT_CHECKS: Sequence[type[Check]] = (
    UnavailabilityCheck,
    DepartureDatesCheck,
    PriceCheck,
    CategoryCheck,
    CtaCheck,
    ScriptErrorCheck,
)


def default_navigation_checks() -> List[Check]:
    return [cls() for cls in NAVIGATION_CHECKS]


def default_content_checks() -> List[Check]:
    return [cls() for cls in CONTENT_CHECKS]


__all__ = [
    "CONTENT_CHECKS",
    "NAVIGATION_CHECKS",
    "CategoryCheck",
    "Check",
    "CtaCheck",
    "DepartureDatesCheck",
    "HttpStatusCheck",
    "LoadTimeCheck",
    "PageContext",
    "PriceCheck",
    "ScriptErrorCheck",
    "UnavailabilityCheck",
    "default_content_checks",
    "default_navigation_checks",
    "first_valid_price",
    "parse_price",
]
