# pricing_monitor/report/json_report.py

"""
JSON-отчёт PricingMonitor: сводка запуска и результат по каждому URL.
"""
from pathlib import Path

from pricing_monitor.aggregator import RunSummary


def render_json(summary: RunSummary, output_path: Path | str) -> Path:
    """
    Сохраняет summary в JSON (UTF-8, с отступами), перезаписывая прежний файл.

    :param summary: объект RunSummary с результатами проверки
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(summary.json(pretty=True), encoding="utf-8")
    return output
