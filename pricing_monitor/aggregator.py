# File: pricing_monitor/aggregator.py
"""pricing_monitor.aggregator: сводка по запуску проверки и группировка ошибок."""

from __future__ import annotations

import json
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

from pricing_monitor.models import PageValidationResult, utcnow

OTHER_CATEGORY = "Other"

_Matcher = Callable[[str], bool]

_HTTP_5XX = re.compile(r"HTTP 5\d\d\b")

#: Checked in order, first match wins.
ERROR_CATEGORIES: Sequence[Tuple[str, _Matcher]] = (
    ("HTTP 404", lambda text: "HTTP 404" in text),
    ("HTTP 5xx", lambda text: bool(_HTTP_5XX.search(text))),
    ("Unavailable panel visible", lambda text: "unavailable panel visible" in text.lower()),
    ("No departure dates", lambda text: "no departure dates" in text.lower()),
    ("No valid prices", lambda text: "no valid prices" in text.lower()),
    ("Timeout", lambda text: "timeout" in text.lower() or "timed out" in text.lower()),
)


def categorize(errors: Iterable[str]) -> str:
    """Имя категории для набора ошибок одной страницы."""
    text = "; ".join(errors)
    for name, matches in ERROR_CATEGORIES:
        if matches(text):
            return name
    return OTHER_CATEGORY


@dataclass(slots=True)
class RunSummary:
    """Итоги одного запуска проверки."""

    total_tested: int
    passed: int
    failed: int
    warnings: int
    avg_load_time_ms: float
    categories: List[Tuple[str, int]] = field(default_factory=list)
    results: List[PageValidationResult] = field(default_factory=list)
    run_at: datetime = field(default_factory=utcnow)

    @property
    def failures(self) -> List[PageValidationResult]:
        return [r for r in self.results if not r.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_at": self.run_at.isoformat(),
            "total_tested": self.total_tested,
            "passed": self.passed,
            "failed": self.failed,
            "warnings": self.warnings,
            "avg_load_time_ms": self.avg_load_time_ms,
            "categories": [{"category": name, "count": count} for name, count in self.categories],
            "results": [r.to_dict() for r in self.results],
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def group_failures(results: Iterable[PageValidationResult]) -> List[Tuple[str, int]]:
    """Категории неуспешных страниц по убыванию частоты (при равенстве сохраняется порядок появления)."""
    counts = Counter(categorize(r.errors) for r in results if not r.passed)
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def summarize(results: Iterable[PageValidationResult]) -> RunSummary:
    """Собирает RunSummary из результатов проверки."""
    items = list(results)
    total = len(items)
    passed = sum(1 for r in items if r.passed)
    avg = sum(r.load_time_ms for r in items) / total if total else 0.0
    return RunSummary(
        total_tested=total,
        passed=passed,
        failed=total - passed,
        warnings=sum(1 for r in items if r.warnings),
        avg_load_time_ms=avg,
        categories=group_failures(items),
        results=items,
    )


def format_summary(summary: RunSummary) -> str:
    """Текстовая сводка для вывода в терминал."""
    lines = [
        "Pricing page monitor results",
        f"  Total tested: {summary.total_tested}",
        f"  Passed:       {summary.passed}",
        f"  Failed:       {summary.failed}",
        f"  Warnings:     {summary.warnings}",
        f"  Avg load:     {round(summary.avg_load_time_ms)}ms",
    ]
    if summary.categories:
        lines.append("")
        lines.append("Failures by category:")
        lines.extend(f"  {name}: {count}" for name, count in summary.categories)
    failures = summary.failures
    if failures:
        lines.append("")
        lines.append("Failed pages:")
        for result in failures:
            lines.append(f"  {result.url}")
            lines.append(f"    Errors: {', '.join(result.errors)}")
            if result.screenshot_path:
                lines.append(f"    Screenshot: {result.screenshot_path}")
    return "\n".join(lines)


__all__ = [
    "ERROR_CATEGORIES",
    "OTHER_CATEGORY",
    "RunSummary",
    "categorize",
    "format_summary",
    "group_failures",
    "summarize",
]
