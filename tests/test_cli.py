# File: tests/test_cli.py
"""Тесты для CLI (`clip_scout/cli.py`) с использованием click.testing.CliRunner.
Проверяют команды `crawl`, `config`, `--version`, а также обработку ошибок.
"""
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

import clip_scout.cli as cli_module
from clip_scout.cli import cli
from clip_scout.crawler.models import CompletionReason
from clip_scout.engine import CrawlSummary
from clip_scout.errors import RenderError


@pytest.fixture()
def captured(monkeypatch, tmp_path):
    """Патчим start_crawl: запоминаем конфиг и возвращаем фиктивную сводку."""
    seen = {}

    async def fake_crawl(cfg):
        seen["config"] = cfg
        product = tmp_path / "shop-ProductDetails.csv"
        product.write_text("", encoding="utf-8")
        return CrawlSummary(
            reason=CompletionReason.IDLE,
            visited_count=12,
            records_written=3,
            product_file=product,
            product_file_exists=True,
            urls_file=tmp_path / "shop-ProcessedURLs.csv",
            elapsed=1.5,
        )

    monkeypatch.setattr(cli_module, "start_crawl", fake_crawl)
    return seen


def write_config(tmp_path: Path, **data) -> Path:
    cfg_file = tmp_path / "config.json"
    cfg_file.write_text(json.dumps({"seed_url": "https://shop.com", **data}), encoding="utf-8")
    return cfg_file


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "ClipScout" in result.output


def test_show_config(tmp_path):
    cfg_file = write_config(tmp_path, idle_timeout="30s")
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["seed_url"] == "https://shop.com/"
    assert data["idle_timeout"] == 30.0


def test_missing_default_config_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["config"])
    assert result.exit_code == 0
    assert json.loads(result.output)["seed_url"] == "https://www.tokopedia.com/"


def test_missing_explicit_config_is_an_error(tmp_path):
    result = CliRunner().invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "config"])
    assert result.exit_code == 1


def test_crawl_prints_summary(tmp_path, captured):
    cfg_file = write_config(tmp_path)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "crawl"])
    assert result.exit_code == 0, result.output
    assert "Starting crawl of https://shop.com/" in result.output
    assert "12 pages visited" in result.output
    assert "3 new records" in result.output


def test_crawl_overrides(tmp_path, captured):
    cfg_file = write_config(tmp_path)
    result = CliRunner().invoke(
        cli,
        [
            "--config", str(cfg_file), "crawl",
            "--seed", "https://other.com/",
            "--stop-after", "10m",
            "--cancel-at", "https://other.com/end",
            "--memstats", "0",
            "--no-headless",
            "--output-dir", str(tmp_path),
        ],
    )
    assert result.exit_code == 0, result.output
    cfg = captured["config"]
    assert cfg.base_url == "https://other.com/"
    assert cfg.stop_after == 600.0
    assert cfg.cancel_at_url == "https://other.com/end"
    assert cfg.memstats_interval == 0.0
    assert cfg.headless is False
    assert cfg.output_dir == tmp_path


def test_crawl_invalid_override(tmp_path, captured):
    cfg_file = write_config(tmp_path)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "crawl", "--stop-after", "whenever"])
    assert result.exit_code == 1
    assert "config" not in captured


def test_crawl_fatal_error_exit_code(tmp_path, monkeypatch):
    async def broken(cfg):
        raise RenderError("https://shop.com/", "browser crashed")

    monkeypatch.setattr(cli_module, "start_crawl", broken)
    cfg_file = write_config(tmp_path)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "crawl"])
    assert result.exit_code == 1
    assert "browser crashed" in result.output
