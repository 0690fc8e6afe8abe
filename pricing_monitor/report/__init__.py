# File: pricing_monitor/report/__init__.py
"""pricing_monitor.report: JSON, CSV and HTML writers for validation results."""

from .csv_report import render_csv
from .html_report import DEFAULT_TEMPLATE_DIR, render_html
from .json_report import render_json

__all__ = ["DEFAULT_TEMPLATE_DIR", "render_csv", "render_html", "render_json"]
