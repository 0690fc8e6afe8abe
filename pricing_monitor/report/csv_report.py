# File: pricing_monitor/report/csv_report.py
"""pricing_monitor.report.csv_report: one CSV row per validated URL."""

from __future__ import annotations

from pathlib import Path
from typing import Union

import pandas as pd

from pricing_monitor.aggregator import RunSummary

CSV_COLUMNS = [
    "URL",
    "Domain",
    "Passed",
    "Load Time (ms)",
    "HTTP Status",
    "Errors",
    "Warnings",
    "Tested At",
]


def to_dataframe(summary: RunSummary) -> pd.DataFrame:
    rows = [
        {
            "URL": r.url,
            "Domain": r.domain,
            "Passed": r.passed,
            "Load Time (ms)": r.load_time_ms,
            "HTTP Status": r.http_status,
            "Errors": "; ".join(r.errors),
            "Warnings": "; ".join(r.warnings),
            "Tested At": r.tested_at.isoformat(),
        }
        for r in summary.results
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def render_csv(summary: RunSummary, output_path: Union[Path, str]) -> Path:
    """Writes the per-URL table to *output_path* (UTF-8, header row, no index)."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    to_dataframe(summary).to_csv(output, index=False, encoding="utf-8")
    return output


__all__ = ["CSV_COLUMNS", "render_csv", "to_dataframe"]
