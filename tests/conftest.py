# File: tests/conftest.py
import asyncio
from pathlib import Path
from types import SimpleNamespace
from typing import AsyncIterator, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest
from aiohttp import ClientError, web
from bs4 import BeautifulSoup
from bs4.element import Tag

from pricing_monitor.config import MonitorConfig
from pricing_monitor.models import CheckResult, DiscoveredUrl, PageValidationResult, UrlSource

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


def urlset_xml(locs: Iterable[str], lastmod: Optional[str] = None) -> str:
    """Build a <urlset> document for *locs*."""
    entries = "".join(
        f"<url><loc>{loc}</loc>{f'<lastmod>{lastmod}</lastmod>' if lastmod else ''}</url>" for loc in locs
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset xmlns="{SITEMAP_NS}">{entries}</urlset>'


def index_xml(children: Iterable[str]) -> str:
    """Build a <sitemapindex> document referencing *children*."""
    entries = "".join(f"<sitemap><loc>{c}</loc></sitemap>" for c in children)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex xmlns="{SITEMAP_NS}">{entries}</sitemapindex>'


# --------------------------------------------------------------------------- #
#                    In-memory stand-in for a Playwright page                  #
# --------------------------------------------------------------------------- #


def _is_visible(element: Tag) -> bool:
    node = element
    while isinstance(node, Tag):
        style = (node.get("style") or "").replace(" ", "").lower()
        if node.has_attr("hidden") or "display:none" in style or "visibility:hidden" in style:
            return False
        node = node.parent
    return True


class FakeLocator:
    def __init__(self, elements: Sequence[Tag]) -> None:
        self._elements = list(elements)

    async def count(self) -> int:
        return len(self._elements)

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self._elements[index:index + 1])

    @property
    def first(self) -> "FakeLocator":
        return self.nth(0)

    async def is_visible(self) -> bool:
        return bool(self._elements) and _is_visible(self._elements[0])

    async def text_content(self) -> Optional[str]:
        return self._elements[0].get_text() if self._elements else None

    async def all_text_contents(self) -> List[str]:
        return [e.get_text() for e in self._elements]


class FakePage:
    """Mimics the subset of the Playwright page API used by the pipeline."""

    def __init__(
        self,
        html: str = "",
        status: int = 200,
        *,
        error: Optional[Exception] = None,
        page_errors: Sequence[str] = (),
        console_errors: Sequence[Tuple[str, str]] = (),
        routes: Optional[Dict[str, dict]] = None,
        screenshot_error: Optional[Exception] = None,
    ) -> None:
        self._routes = routes
        self._load(html=html, status=status, error=error, page_errors=page_errors, console_errors=console_errors)
        self._handlers: Dict[str, List[Callable]] = {}
        self._screenshot_error = screenshot_error
        self.visited: List[str] = []
        self.screenshots: List[str] = []
        self.closed = False

    def _load(self, html="", status=200, error=None, page_errors=(), console_errors=(), delay=0.0) -> None:
        self._html = html
        self._delay = delay
        self._soup = BeautifulSoup(html, "html.parser")
        self._status = status
        self._error = error
        self._page_errors = list(page_errors)
        self._console_errors = list(console_errors)

    def on(self, event: str, handler: Callable) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def _emit(self, event: str, payload) -> None:
        for handler in self._handlers.get(event, []):
            handler(payload)

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    async def goto(self, url: str, **kwargs):
        self.visited.append(url)
        if self._routes is not None:
            self._load(**self._routes[url])
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        for message in self._page_errors:
            self._emit("pageerror", SimpleNamespace(message=message, stack=""))
        for text, source in self._console_errors:
            self._emit("console", SimpleNamespace(type="error", text=text, location={"url": source}))
        return SimpleNamespace(status=self._status)

    async def wait_for_load_state(self, state: str = "load", **kwargs) -> None:
        return None

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self._soup.select(selector))

    def get_by_text(self, pattern) -> FakeLocator:
        elements: List[Tag] = []
        for text in self._soup.find_all(string=pattern):
            parent = text.parent
            if isinstance(parent, Tag) and parent.name not in ("script", "style") and parent not in elements:
                elements.append(parent)
        return FakeLocator(elements)

    async def text_content(self, selector: str) -> Optional[str]:
        element = self._soup.select_one(selector)
        return element.get_text() if element is not None else None

    async def content(self) -> str:
        return self._html

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        if self._screenshot_error is not None:
            raise self._screenshot_error
        Path(path).write_bytes(b"\x89PNG")
        self.screenshots.append(path)
        return b"\x89PNG"

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    """Hands out FakePages that serve *routes* keyed by URL."""

    def __init__(self, routes: Dict[str, dict]) -> None:
        self.routes = routes
        self.pages: List[FakePage] = []

    async def new_page(self) -> FakePage:
        page = FakePage(routes=self.routes)
        self.pages.append(page)
        return page


class FakeRenderer:
    """Serves canned HTML for the link crawler; unknown URLs fail like a network error."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.rendered: List[str] = []

    async def render(self, url: str) -> str:
        self.rendered.append(url)
        if url not in self.pages:
            raise ClientError(f"cannot load {url}")
        return self.pages[url]


def make_result(url: str, *, errors=(), warnings=(), load_time_ms=100, screenshot=None) -> PageValidationResult:
    """A PageValidationResult whose checks agree with *errors* and *warnings*."""
    checks = [CheckResult(name="HTTP Status 200", passed=not errors, critical=True)]
    if warnings:
        checks.append(CheckResult(name="Booking CTA exists", passed=False, critical=False))
    return PageValidationResult(
        url=url,
        domain="www.example-cruises.com",
        load_time_ms=load_time_ms,
        http_status=200 if not errors else 500,
        checks=tuple(checks),
        errors=tuple(errors),
        warnings=tuple(warnings),
        screenshot_path=screenshot,
    )


GOOD_PAGE = """
<html><body>
  <h1>British Isles Explorer</h1>
  <div class="departure-list"><span>Departs May 12, 2027</span></div>
  <div class="price-box">From <span class="price">$4,995</span> per guest</div>
  <section class="stateroom-grid"><h3>Veranda Stateroom</h3></section>
  <button>Request a Quote</button>
</body></html>
"""


# --------------------------------------------------------------------------- #
#                                  Fixtures                                   #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def basic_config(tmp_path) -> MonitorConfig:
    """
    Return a valid MonitorConfig writing every artifact under tmp_path.
    """
    return MonitorConfig(
        domains=[
            {"name": "Main", "base_url": "https://www.example-cruises.com"},
            {"name": "Oceans", "base_url": "https://www.example-oceancruises.com"},
            {"name": "Legacy", "base_url": "https://www.legacy-cruises.com", "enabled": False},
        ],
        max_concurrent_discovery=2,
        request_timeout=2.0,
        page_load_timeout=2.0,
        output={
            "manifest_file": str(tmp_path / "manifest.json"),
            "results_json": str(tmp_path / "results.json"),
            "results_csv": str(tmp_path / "results.csv"),
            "screenshots_dir": str(tmp_path / "screenshots"),
        },
    )


@pytest.fixture()
def target() -> DiscoveredUrl:
    return DiscoveredUrl(
        url="https://www.example-cruises.com/cruises/ocean/isles/pricing.html",
        source=UrlSource.SITEMAP,
        domain="www.example-cruises.com",
    )


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
