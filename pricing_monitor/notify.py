# File: pricing_monitor/notify.py
"""pricing_monitor.notify: posts a run summary to a Slack-compatible webhook."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from aiohttp import ClientError, ClientSession, ClientTimeout

from pricing_monitor.aggregator import RunSummary
from pricing_monitor.logger import logger

MAX_LISTED_FAILURES = 5
TITLE = "Pricing Page Monitor"


def build_message(summary: RunSummary) -> Dict[str, Any]:
    """Slack block-kit payload for *summary*."""
    status = "✅" if summary.failed == 0 else "🚨"
    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": f"{status} {TITLE}", "emoji": True},
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Total Tested:*\n{summary.total_tested}"},
                {"type": "mrkdwn", "text": f"*Passed:*\n{summary.passed}"},
                {"type": "mrkdwn", "text": f"*Failed:*\n{summary.failed}"},
                {"type": "mrkdwn", "text": f"*Avg Load Time:*\n{round(summary.avg_load_time_ms)}ms"},
            ],
        },
    ]

    failures = summary.failures
    if failures:
        listed = [
            f"• <{r.url}|{urlsplit(r.url).path or r.url}>: {', '.join(r.errors)}"
            for r in failures[:MAX_LISTED_FAILURES]
        ]
        text = "*Failed Pages:*\n" + "\n".join(listed)
        if len(failures) > MAX_LISTED_FAILURES:
            text += f"\n_...and {len(failures) - MAX_LISTED_FAILURES} more_"
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": text}})

    blocks.append(
        {
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": f"Run at: {summary.run_at.strftime('%Y-%m-%d %H:%M:%S %Z')}"}
            ],
        }
    )
    return {"blocks": blocks}


async def post_summary(summary: RunSummary, webhook_url: Optional[str], *, timeout: float = 10.0) -> bool:
    """Sends one POST with the summary. Returns True on a 2xx answer; never raises."""
    if not webhook_url:
        logger.info("No webhook configured, skipping notification")
        return False

    payload = build_message(summary)
    try:
        async with ClientSession(timeout=ClientTimeout(total=timeout)) as session:
            async with session.post(webhook_url, json=payload) as resp:
                if 200 <= resp.status < 300:
                    logger.info("Notification sent")
                    return True
                logger.error("Notification failed: HTTP %s", resp.status)
                return False
    except (ClientError, asyncio.TimeoutError) as exc:
        logger.error("Failed to send notification: %s", exc)
        return False


__all__ = ["build_message", "post_summary"]
