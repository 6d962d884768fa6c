# File: clip_scout/engine.py
"""clip_scout.engine: Orchestration layer: сборка компонентов, запуск обхода и итоговая сводка."""

from __future__ import annotations

import asyncio
import gc
import time
from contextlib import AsyncExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from aiohttp import ClientSession, ClientTimeout

from clip_scout.config import CrawlerConfig
from clip_scout.crawler.dispatcher import URLDispatcher
from clip_scout.crawler.explorer import PageExplorer
from clip_scout.crawler.fetcher import Fetcher
from clip_scout.crawler.models import CompletionReason, CrawlResult
from clip_scout.crawler.orchestrator import ExtractionOrchestrator
from clip_scout.crawler.renderer import PlaywrightRenderer, RenderSession
from clip_scout.errors import ClipScoutError
from clip_scout.logger import logger
from clip_scout.report.tsv_report import (
    RecordWriter,
    product_file_path,
    urls_file_path,
    write_processed_urls,
)
from clip_scout.telemetry import log_memory_stats, run_memstats

__all__ = ["CrawlSummary", "start_crawl"]


@dataclass(slots=True, frozen=True)
class CrawlSummary:
    """Итог одного запуска краулера."""

    reason: CompletionReason
    visited_count: int
    records_written: int
    product_file: Path
    product_file_exists: bool
    urls_file: Path
    elapsed: float


async def _stop_after(dispatcher: URLDispatcher, run_task: asyncio.Task, delay: float, grace: float) -> None:
    await asyncio.sleep(delay)
    logger.info("Stop timeout of %.1f s reached. Finishing the current page...", delay)
    dispatcher.stop()
    await asyncio.sleep(grace)
    if not run_task.done():
        logger.warning("Crawl did not stop within %.1f s, cancelling", grace)
        run_task.cancel()


async def _cancel_after(run_task: asyncio.Task, delay: float) -> None:
    await asyncio.sleep(delay)
    logger.info("Cancel timeout of %.1f s reached. Cancelling the crawl...", delay)
    run_task.cancel()


async def _run_dispatcher(
    config: CrawlerConfig,
    session: ClientSession,
    renderer: RenderSession,
    writer: RecordWriter,
) -> CrawlResult:
    """Запускает диспетчер и вспомогательные задачи (таймеры, телеметрия)."""
    explorer = PageExplorer(Fetcher(session, config), config.base_url)
    orchestrator = ExtractionOrchestrator(renderer, writer)
    dispatcher = URLDispatcher(
        explorer,
        orchestrator,
        idle_timeout=config.idle_timeout,
        discovery_workers=config.discovery_workers,
        discovery_queue_size=config.discovery_queue_size,
        stop_at_url=config.stop_at_url,
        cancel_at_url=config.cancel_at_url,
    )
    dispatcher.submit(config.base_url)
    run_task = asyncio.create_task(dispatcher.run())

    helpers: list[asyncio.Task] = []
    if config.memstats_interval > 0:
        log_memory_stats()
        helpers.append(asyncio.create_task(run_memstats(config.memstats_interval)))
    # отмена важнее мягкой остановки, если заданы обе
    if config.cancel_after > 0:
        helpers.append(asyncio.create_task(_cancel_after(run_task, config.cancel_after)))
    elif config.stop_after > 0:
        helpers.append(
            asyncio.create_task(_stop_after(dispatcher, run_task, config.stop_after, config.shutdown_grace))
        )

    try:
        await asyncio.wait({run_task})
    finally:
        for h in helpers:
            h.cancel()
        await asyncio.gather(*helpers, return_exceptions=True)
        if not run_task.done():
            run_task.cancel()
            await asyncio.gather(run_task, return_exceptions=True)
        if config.memstats_interval > 0:
            gc.collect()
            log_memory_stats()

    if run_task.cancelled():
        return dispatcher.snapshot(CompletionReason.CANCELLED)
    return run_task.result()


async def start_crawl(config: CrawlerConfig, renderer: Optional[RenderSession] = None) -> CrawlSummary:
    """
    Обходит домен config.seed_url и возвращает CrawlSummary.

    Если renderer не передан, запускается Chromium через Playwright.
    RenderError и OutputError логируются и пробрасываются дальше.
    """
    start = time.monotonic()
    logger.info("Starting crawl of %s", config.base_url)
    writer = RecordWriter(product_file_path(config.output_dir, config.base_url))

    try:
        async with AsyncExitStack() as stack:
            session = await stack.enter_async_context(
                ClientSession(
                    timeout=ClientTimeout(total=config.fetch_timeout),
                    headers={"User-Agent": config.user_agent},
                )
            )
            if renderer is None:
                renderer = await stack.enter_async_context(PlaywrightRenderer(config))
            result = await _run_dispatcher(config, session, renderer, writer)

        urls_file = write_processed_urls(urls_file_path(config.output_dir, config.base_url), result.processed)
    except ClipScoutError as exc:
        logger.error("Crawl aborted: %s", exc)
        raise

    elapsed = time.monotonic() - start
    exists = writer.path.exists()
    logger.info("=" * 72)
    logger.info("Completed crawling & scraping the domain: %s (%s)", config.base_url, result.reason.value)
    if exists:
        logger.info("The output TSV file location: %s", writer.path)
    else:
        logger.info("Required data is not present in any of the URLs of the crawled domain.")
    logger.info("Processed URLs listing: %s", urls_file)
    logger.info("=" * 72)
    logger.info("Time required to complete: %.2f s", elapsed)

    return CrawlSummary(
        reason=result.reason,
        visited_count=result.visited_count,
        records_written=writer.written,
        product_file=writer.path,
        product_file_exists=exists,
        urls_file=urls_file,
        elapsed=elapsed,
    )
