# File: tests/test_notify.py
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web
from conftest import make_result, serve_app

from pricing_monitor.aggregator import summarize
from pricing_monitor.notify import build_message, post_summary


@pytest_asyncio.fixture
async def webhook(unused_tcp_port: int) -> AsyncIterator[tuple[str, list]]:
    app = web.Application()
    received: list = []

    async def handle_hook(request):
        received.append(await request.json())
        return web.Response(text="ok")

    async def handle_broken(_):
        return web.Response(status=500, text="invalid_payload")

    app.router.add_post("/hook", handle_hook)
    app.router.add_post("/broken", handle_broken)

    async for url in serve_app(app, unused_tcp_port):
        yield url, received


def _failing_summary(count: int):
    return summarize(
        [make_result(f"https://www.example-cruises.com/c{i}/pricing.html", errors=["HTTP 404"]) for i in range(count)]
        + [make_result("https://www.example-cruises.com/ok/pricing.html")]
    )


def test_build_message_all_passing():
    message = build_message(summarize([make_result("https://h.com/a")]))
    blocks = message["blocks"]
    assert blocks[0]["text"]["text"].startswith("✅")
    assert [b["type"] for b in blocks] == ["header", "section", "context"]


def test_build_message_lists_first_five_failures():
    blocks = build_message(_failing_summary(7))["blocks"]
    assert blocks[0]["text"]["text"].startswith("🚨")
    failed_text = blocks[2]["text"]["text"]
    assert failed_text.count("• <") == 5
    assert "...and 2 more" in failed_text
    assert "*Failed:*\n7" in [f["text"] for f in blocks[1]["fields"]]


@pytest.mark.asyncio()
async def test_post_summary_without_url_is_noop():
    assert await post_summary(_failing_summary(1), None) is False


@pytest.mark.asyncio()
async def test_post_summary_sends_payload(webhook):
    base, received = webhook
    summary = _failing_summary(2)
    assert await post_summary(summary, f"{base}/hook", timeout=2.0) is True
    assert received == [build_message(summary)]


@pytest.mark.asyncio()
async def test_post_summary_failure_is_not_raised(webhook, unused_tcp_port_factory):
    base, _ = webhook
    assert await post_summary(_failing_summary(1), f"{base}/broken", timeout=2.0) is False
    dead = f"http://localhost:{unused_tcp_port_factory()}/hook"
    assert await post_summary(_failing_summary(1), dead, timeout=2.0) is False
