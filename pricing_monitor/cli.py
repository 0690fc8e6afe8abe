# === FILE: pricing_monitor/cli.py ===
#!/usr/bin/env python3
"""
Точка входа PricingMonitor через командную строку.

Команды:
  discover  Найти целевые URL (sitemap и, опционально, обход ссылок) и сохранить манифест
  validate  Проверить все URL из манифеста и сохранить отчёты
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Код выхода validate равен 1, если хотя бы одна страница не прошла проверку.

Пример:
  pricing-monitor discover --include-link-crawl --max-pages 200
  pricing-monitor validate --json results.json --csv results.csv
"""
import asyncio
import sys
from pathlib import Path

import click

from pricing_monitor import __version__
from pricing_monitor.aggregator import format_summary
from pricing_monitor.config import load_config
from pricing_monitor.engine import run_discovery, run_validation
from pricing_monitor.logger import DEFAULT_FORMAT, init_logging
from pricing_monitor.notify import post_summary
from pricing_monitor.report.csv_report import render_csv
from pricing_monitor.report.html_report import render_html
from pricing_monitor.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='PricingMonitor, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Обнаружение и проверка страниц с ценами."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('discover', context_settings=CONTEXT_SETTINGS)
@click.option('--include-link-crawl', is_flag=True, help='Дополнительно обойти ссылки от стартовых страниц')
@click.option(
    '--max-pages', 'max_pages',
    type=click.IntRange(min=1),
    default=None,
    help='Лимит страниц для обхода ссылок (override crawl.max_pages)'
)
@click.option(
    '--manifest', '-m', 'manifest_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Куда сохранить манифест (override output.manifest_file)'
)
@click.option(
    '--sitemap-dir', 'sitemap_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Каталог с локальной копией sitemap'
)
@click.pass_context
def discover(ctx, include_link_crawl, max_pages, manifest_path, sitemap_dir):
    """Найти целевые URL и записать манифест."""
    cfg = ctx.obj['config']
    if sitemap_dir is not None:
        cfg = cfg.model_copy(update={'sitemap_dir': sitemap_dir})
    try:
        manifest = asyncio.run(
            run_discovery(
                cfg,
                include_link_crawl=include_link_crawl,
                max_pages=max_pages,
                manifest_path=manifest_path,
            )
        )
    except Exception as e:
        print_error(f'Ошибка при обнаружении URL: {e}')

    click.echo(f'Discovered {manifest.total_urls} URLs')
    for domain, count in sorted(manifest.by_domain.items()):
        click.echo(f'  {domain}: {count}')
    for source, count in sorted(manifest.by_source.items()):
        click.echo(f'  [{source}] {count}')


@cli.command('validate', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--manifest', '-m', 'manifest_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Манифест с URL (override output.manifest_file)'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл (override output.results_json)'
)
@click.option(
    '--csv', 'csv_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить CSV-отчёт в файл (override output.results_csv)'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (по умолчанию шаблон из пакета)'
)
@click.option(
    '--workers', '-w', 'workers',
    type=click.IntRange(min=1),
    default=None,
    help='Число параллельно проверяемых страниц (override max_concurrent_tests)'
)
@click.option(
    '--webhook-url', 'webhook_url',
    default=None,
    envvar='SLACK_WEBHOOK_URL',
    help='Webhook для уведомления о результатах'
)
@click.option(
    '--run-timeout', 'run_timeout',
    type=float,
    default=None,
    help='Таймаут всей проверки (секунд); непроверенные URL попадают в отчёт как ошибки'
)
@click.pass_context
def validate(ctx, manifest_path, json_output, csv_output, html_output, template_dir, workers, webhook_url, run_timeout):
    """Проверить страницы из манифеста и сгенерировать отчёты."""
    cfg = ctx.obj['config']
    try:
        summary = asyncio.run(
            run_validation(cfg, manifest_path=manifest_path, workers=workers, run_timeout=run_timeout)
        )
    except Exception as e:
        print_error(f'Ошибка при проверке: {e}')

    json_path = json_output or cfg.output.results_json
    csv_path = csv_output or cfg.output.results_csv
    html_path = html_output or cfg.output.results_html

    try:
        click.echo(f'JSON report: {render_json(summary, json_path)}')
        click.echo(f'CSV report: {render_csv(summary, csv_path)}')
        if html_path:
            click.echo(f'HTML report: {render_html(summary, template_dir, html_path)}')
    except Exception as e:
        print_error(f'Ошибка при сохранении отчётов: {e}')

    asyncio.run(post_summary(summary, webhook_url or cfg.webhook_url, timeout=cfg.request_timeout))

    click.echo(format_summary(summary))
    if summary.failed:
        sys.exit(1)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
