# clip_scout/crawler/dispatcher.py
"""
URL dispatcher: the single owner of the visited set.

Discovered URLs arrive on an inbox queue. Every new URL goes to a bounded pool
of discovery workers and is then extracted in the dispatcher loop itself, so
only one page is ever rendered at a time. When nothing arrives on the inbox
for ``idle_timeout`` seconds and no accepted URL is still waiting for or
undergoing discovery, the crawl is considered finished.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Protocol

from clip_scout.crawler.models import CompletionReason, CrawlResult
from clip_scout.logger import logger
from clip_scout.utils import normalize_url

__all__ = ("URLDispatcher",)

_STOP = None


class Explorer(Protocol):
    async def explore(self, url: str, emit: Callable[[str], None]) -> int: ...


class Extractor(Protocol):
    async def extract(self, url: str) -> object: ...


class URLDispatcher:
    """Deduplicates URLs and fans them out to discovery and extraction."""

    def __init__(
        self,
        explorer: Explorer,
        extractor: Extractor,
        *,
        idle_timeout: float = 15.0,
        discovery_workers: int = 8,
        discovery_queue_size: int = 1000,
        stop_at_url: Optional[str] = None,
        cancel_at_url: Optional[str] = None,
        on_complete: Optional[Callable[[CrawlResult], None]] = None,
    ) -> None:
        self.explorer = explorer
        self.extractor = extractor
        self.idle_timeout = idle_timeout
        self.discovery_workers = discovery_workers
        self.stop_at_url = normalize_url(stop_at_url) if stop_at_url else None
        self.cancel_at_url = normalize_url(cancel_at_url) if cancel_at_url else None
        self.on_complete = on_complete
        self.done = asyncio.Event()
        self.result: Optional[CrawlResult] = None
        self._inbox: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._discovery: asyncio.Queue[str] = asyncio.Queue(maxsize=discovery_queue_size)
        self._visited: Dict[str, bool] = {}
        self._processed: List[str] = []
        # accepted URLs not yet fully explored (queued or in a worker)
        self._pending_discovery = 0
        self._stopping = False

    # ------------------------------------------------------------------ #
    # Inbound API                                                         #
    # ------------------------------------------------------------------ #

    def submit(self, url: str) -> None:
        """Queue *url* for the dispatcher; never blocks."""
        self._inbox.put_nowait(url)

    def stop(self) -> None:
        """Ask the loop to exit once the current extraction has finished."""
        self._stopping = True
        self._inbox.put_nowait(_STOP)

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    @property
    def processed(self) -> tuple[str, ...]:
        return tuple(self._processed)

    @property
    def pending_discovery(self) -> int:
        return self._pending_discovery

    def snapshot(self, reason: CompletionReason) -> CrawlResult:
        """The signalled result, or the current state under *reason* if none was signalled."""
        if self.result is not None:
            return self.result
        return CrawlResult(reason=reason, visited_count=len(self._visited), processed=tuple(self._processed))

    # ------------------------------------------------------------------ #
    # Actor loop                                                          #
    # ------------------------------------------------------------------ #

    async def run(self) -> CrawlResult:
        """Process the inbox until idle, stop or a watched URL; return the result."""
        workers = [asyncio.create_task(self._discovery_worker()) for _ in range(self.discovery_workers)]
        try:
            reason = await self._loop()
        except asyncio.CancelledError:
            self._complete(CompletionReason.CANCELLED)
            raise
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
        return self._complete(reason)

    async def _loop(self) -> CompletionReason:
        while True:
            try:
                url = await asyncio.wait_for(self._inbox.get(), timeout=self.idle_timeout)
            except asyncio.TimeoutError:
                if self._pending_discovery:
                    logger.debug("Inbox idle, %d URLs still in discovery", self._pending_discovery)
                    continue
                logger.info("Explored %d pages", len(self._visited))
                return CompletionReason.IDLE

            if url is _STOP or self._stopping:
                logger.info("Stop requested after %d pages", len(self._visited))
                return CompletionReason.STOPPED
            if url in self._visited:
                continue
            if url == self.cancel_at_url:
                logger.info("Reached cancel URL %s", url)
                return CompletionReason.CANCELLED
            if url == self.stop_at_url:
                logger.info("Reached stop URL %s", url)
                return CompletionReason.STOPPED

            self._visited[url] = True
            self._processed.append(url)
            self._pending_discovery += 1
            await self._discovery.put(url)
            await self.extractor.extract(url)

    async def _discovery_worker(self) -> None:
        while True:
            url = await self._discovery.get()
            try:
                await self.explorer.explore(url, self.submit)
            except Exception:
                logger.exception("Link discovery failed for %s", url)
            finally:
                self._pending_discovery -= 1
                self._discovery.task_done()

    def _complete(self, reason: CompletionReason) -> CrawlResult:
        if self.result is not None:
            return self.result
        self.result = self.snapshot(reason)
        self.done.set()
        if self.on_complete is not None:
            self.on_complete(self.result)
        return self.result
