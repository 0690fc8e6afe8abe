# File: pricing_monitor/report/html_report.py
"""pricing_monitor.report.html_report: HTML-отчёт о проверке страниц (Jinja2)."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from pricing_monitor.aggregator import RunSummary
from pricing_monitor.models import PageValidationResult

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def _row_class(result: PageValidationResult) -> str:
    if not result.passed:
        return "fail"
    return "warn" if result.warnings else "pass"


def build_environment(template_dir: Union[Path, str, None] = None) -> Environment:
    """Окружение Jinja2 с фильтрами отчёта; без template_dir берётся шаблон из пакета."""
    env = Environment(
        loader=FileSystemLoader(str(Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    env.filters["row_class"] = _row_class
    env.filters["ms"] = lambda value: f"{round(value)}ms"
    return env


def render_html(
    summary: RunSummary,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт по сводке запуска и сохраняет его.

    Args:
        summary: объект RunSummary.
        template_dir: директория с шаблоном ``report.html.j2`` (None: шаблон из пакета).
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    template = build_environment(template_dir).get_template(TEMPLATE_NAME)
    context: dict[str, Any] = {
        "summary": summary,
        "results": summary.results,
        "failures": summary.failures,
        "categories": summary.categories,
    }
    output.write_text(template.render(**context), encoding="utf-8")
    return output


__all__ = ["DEFAULT_TEMPLATE_DIR", "TEMPLATE_NAME", "build_environment", "render_html"]
