# File: pricing_monitor/validation/__init__.py
"""pricing_monitor.validation: page checks and the pipeline that runs them."""

from .checks import Check, PageContext
from .pipeline import ValidationPipeline, failed_result, validate_page

__all__ = ["Check", "PageContext", "ValidationPipeline", "failed_result", "validate_page"]
