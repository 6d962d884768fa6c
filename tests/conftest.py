# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Dict, List, Union

import pytest
from aiohttp import web

from clip_scout.config import CrawlerConfig
from clip_scout.crawler.models import RenderedFields
from clip_scout.logger import configure


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep test output readable: only warnings and above on stdout."""
    configure(level="WARNING")
    yield
    configure(level="INFO")


@pytest.fixture()
def basic_config(tmp_path: Path) -> CrawlerConfig:
    """
    Return a CrawlerConfig with short timings for tests.
    """
    return CrawlerConfig(
        seed_url="http://example.com/",
        idle_timeout=0.3,
        memstats_interval=0,
        settle_delay=0,
        output_dir=tmp_path,
    )


class FakeRenderer:
    """
    In-memory render session.

    *captures* maps URL → presence result (a string, or an exception instance to raise);
    *fields* maps URL → RenderedFields (or exception instance) for the second phase.
    """

    def __init__(
        self,
        captures: Dict[str, Union[str, Exception]] | None = None,
        fields: Dict[str, Union[RenderedFields, Exception]] | None = None,
    ) -> None:
        self.captures = captures or {}
        self.fields = fields or {}
        self.presence_calls: List[str] = []
        self.extract_calls: List[str] = []

    async def check_presence(self, url: str) -> str:
        self.presence_calls.append(url)
        value = self.captures.get(url, "")
        if isinstance(value, Exception):
            raise value
        return value

    async def extract_fields(self, url: str) -> RenderedFields:
        self.extract_calls.append(url)
        value = self.fields[url]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture()
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
