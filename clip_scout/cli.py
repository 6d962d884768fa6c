# === FILE: clip_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска краулера ClipScout через командную строку.

Команды:
  crawl     Обойти домен и сохранить найденные товары с видео в TSV
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  --seed URL          Стартовый URL (override seed_url)
  --stop-after DUR    Мягкая остановка через заданное время (например 10m)
  --stop-at URL       Мягкая остановка при встрече URL
  --cancel-after DUR  Жёсткая отмена через заданное время
  --cancel-at URL     Жёсткая отмена при встрече URL
  --memstats DUR      Интервал вывода статистики памяти (0 = выкл)
  --headless/--no-headless  Запуск браузера без UI
  --output-dir DIR    Каталог для TSV-файлов
  --idle-timeout DUR  Окно простоя до завершения обхода

Дополнительно:
  --version, -v       Показать версию ClipScout

Пример:
  clip-scout crawl --seed https://www.tokopedia.com/ --stop-after 2h --no-headless
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from clip_scout import __version__
from clip_scout.config import CrawlerConfig, load_config
from clip_scout.engine import start_crawl
from clip_scout.errors import ClipScoutError
from clip_scout.logger import DEFAULT_FORMAT, init_logging

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='ClipScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
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
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд ClipScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except FileNotFoundError:
        if config_path != Path('configs/default.yaml'):
            print_error(f'Файл конфигурации не найден: {config_path}')
        cfg = CrawlerConfig()
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


def _apply_overrides(cfg: CrawlerConfig, overrides: dict) -> CrawlerConfig:
    """Пересобирает конфиг с заданными параметрами командной строки (с валидацией)."""
    changes = {k: v for k, v in overrides.items() if v is not None}
    if not changes:
        return cfg
    return CrawlerConfig(**{**cfg.model_dump(), **changes})


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--seed', 'seed_url', default=None, help='Стартовый URL')
@click.option('--stop-after', 'stop_after', default=None, help='Мягкая остановка через время (90s, 10m, 1h)')
@click.option('--stop-at', 'stop_at_url', default=None, help='Мягкая остановка при встрече URL')
@click.option('--cancel-after', 'cancel_after', default=None, help='Жёсткая отмена через время')
@click.option('--cancel-at', 'cancel_at_url', default=None, help='Жёсткая отмена при встрече URL')
@click.option('--memstats', 'memstats_interval', default=None, help='Интервал статистики памяти (0 = выкл)')
@click.option('--headless/--no-headless', 'headless', default=None, help='Запуск браузера без UI')
@click.option(
    '--output-dir', '-o', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог для TSV-файлов'
)
@click.option('--idle-timeout', 'idle_timeout', default=None, help='Окно простоя до завершения обхода')
@click.pass_context
def crawl(ctx, **overrides):
    """Обойти домен и сохранить товары с видео."""
    try:
        cfg = _apply_overrides(ctx.obj['config'], overrides)
    except (ValidationError, ValueError) as e:
        print_error(f'Неверные параметры: {e}')

    click.echo(f'Starting crawl of {cfg.base_url}')
    try:
        summary = asyncio.run(start_crawl(cfg))
    except ClipScoutError as e:
        print_error(f'Обход прерван: {e}')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    click.echo(f'Finished ({summary.reason.value}): {summary.visited_count} pages visited')
    if summary.product_file_exists:
        click.echo(f'Products: {summary.product_file} ({summary.records_written} new records)')
    else:
        click.echo('No product data found on the crawled domain.')
    click.echo(f'Processed URLs: {summary.urls_file}')
    click.echo(f'Elapsed: {summary.elapsed:.2f} s')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
