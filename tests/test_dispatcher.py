# File: tests/test_dispatcher.py
from __future__ import annotations

import asyncio
from collections import Counter
from typing import Callable, Dict, List

import pytest

from clip_scout.crawler.dispatcher import URLDispatcher
from clip_scout.crawler.models import CompletionReason, CrawlResult

#: idle window used throughout; small to keep the suite fast
IDLE: float = 0.2


class GraphExplorer:
    """Emits the links of a static site graph; records every call."""

    def __init__(self, graph: Dict[str, List[str]], delay: float = 0.0) -> None:
        self.graph = graph
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0

    async def explore(self, url: str, emit: Callable[[str], None]) -> int:
        self.calls.append(url)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            for link in self.graph.get(url, []):
                emit(link)
            return len(self.graph.get(url, []))
        finally:
            self.active -= 1


class RecordingExtractor:
    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: List[str] = []
        self.running = 0
        self.max_running = 0

    async def extract(self, url: str):
        self.calls.append(url)
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.running -= 1
        return None


GRAPH = {
    "http://s.com/": ["http://s.com/a", "http://s.com/b", "http://s.com/a"],
    "http://s.com/a": ["http://s.com/", "http://s.com/b", "http://s.com/c"],
    "http://s.com/b": ["http://s.com/a", "http://s.com/c"],
    "http://s.com/c": ["http://s.com/"],
}


@pytest.mark.asyncio()
async def test_each_url_extracted_once():
    explorer = GraphExplorer(GRAPH)
    extractor = RecordingExtractor()
    dispatcher = URLDispatcher(explorer, extractor, idle_timeout=IDLE)
    dispatcher.submit("http://s.com/")

    result = await dispatcher.run()

    assert result.reason is CompletionReason.IDLE
    assert Counter(extractor.calls) == Counter({u: 1 for u in GRAPH})
    assert Counter(explorer.calls) == Counter({u: 1 for u in GRAPH})
    assert result.visited_count == len(GRAPH)
    assert set(result.processed) == set(GRAPH)
    assert result.processed[0] == "http://s.com/"


@pytest.mark.asyncio()
async def test_repeated_submissions_are_discarded():
    explorer = GraphExplorer({})
    extractor = RecordingExtractor()
    dispatcher = URLDispatcher(explorer, extractor, idle_timeout=IDLE)
    for _ in range(5):
        dispatcher.submit("http://s.com/x")
    dispatcher.submit("http://s.com/y")
    dispatcher.submit("http://s.com/x")

    result = await dispatcher.run()

    assert extractor.calls == ["http://s.com/x", "http://s.com/y"]
    assert sorted(explorer.calls) == ["http://s.com/x", "http://s.com/y"]
    assert result.visited_count == 2


@pytest.mark.asyncio()
async def test_idle_completion_fires_once_with_visited_count():
    signals: List[CrawlResult] = []
    dispatcher = URLDispatcher(
        GraphExplorer(GRAPH), RecordingExtractor(), idle_timeout=IDLE, on_complete=signals.append
    )
    dispatcher.submit("http://s.com/")

    result = await dispatcher.run()

    assert len(signals) == 1
    assert signals[0] is result
    assert dispatcher.done.is_set()
    assert result.visited_count == dispatcher.visited_count == 4


@pytest.mark.asyncio()
async def test_idle_with_empty_inbox():
    dispatcher = URLDispatcher(GraphExplorer({}), RecordingExtractor(), idle_timeout=IDLE)
    result = await dispatcher.run()
    assert result.reason is CompletionReason.IDLE
    assert result.visited_count == 0
    assert result.processed == ()


@pytest.mark.asyncio()
async def test_extraction_is_serialized():
    graph = {"http://s.com/": [f"http://s.com/p{i}" for i in range(6)]}
    extractor = RecordingExtractor(delay=0.02)
    dispatcher = URLDispatcher(GraphExplorer(graph), extractor, idle_timeout=IDLE)
    dispatcher.submit("http://s.com/")

    await dispatcher.run()

    assert len(extractor.calls) == 7
    assert extractor.max_running == 1


@pytest.mark.asyncio()
async def test_discovery_pool_is_bounded():
    graph = {"http://s.com/": [f"http://s.com/p{i}" for i in range(20)]}
    explorer = GraphExplorer(graph, delay=0.02)
    dispatcher = URLDispatcher(
        explorer, RecordingExtractor(), idle_timeout=IDLE, discovery_workers=3, discovery_queue_size=2
    )
    dispatcher.submit("http://s.com/")

    result = await dispatcher.run()

    assert result.visited_count == 21
    assert len(explorer.calls) == 21
    assert explorer.max_active <= 3


@pytest.mark.asyncio()
async def test_failing_discovery_does_not_stop_crawl():
    class FlakyExplorer(GraphExplorer):
        async def explore(self, url, emit):
            if url == "http://s.com/a":
                raise RuntimeError("boom")
            return await super().explore(url, emit)

    extractor = RecordingExtractor()
    dispatcher = URLDispatcher(FlakyExplorer(GRAPH), extractor, idle_timeout=IDLE)
    dispatcher.submit("http://s.com/")

    result = await dispatcher.run()

    assert result.reason is CompletionReason.IDLE
    assert set(extractor.calls) == set(GRAPH)


@pytest.mark.asyncio()
async def test_stop_at_url_ends_before_dispatch():
    graph = {"http://s.com/": ["http://s.com/a"], "http://s.com/a": ["http://s.com/b"]}
    extractor = RecordingExtractor()
    dispatcher = URLDispatcher(
        GraphExplorer(graph), extractor, idle_timeout=IDLE, stop_at_url="http://s.com/b"
    )
    dispatcher.submit("http://s.com/")

    result = await dispatcher.run()

    assert result.reason is CompletionReason.STOPPED
    assert "http://s.com/b" not in extractor.calls
    assert extractor.calls == ["http://s.com/", "http://s.com/a"]


@pytest.mark.asyncio()
async def test_cancel_at_url():
    graph = {"http://s.com/": ["http://s.com/a"]}
    dispatcher = URLDispatcher(
        GraphExplorer(graph), RecordingExtractor(), idle_timeout=IDLE, cancel_at_url="http://s.com/a"
    )
    dispatcher.submit("http://s.com/")
    result = await dispatcher.run()
    assert result.reason is CompletionReason.CANCELLED
    assert result.processed == ("http://s.com/",)


@pytest.mark.asyncio()
async def test_stop_waits_for_current_extraction():
    graph = {"http://s.com/": [f"http://s.com/p{i}" for i in range(10)]}
    extractor = RecordingExtractor(delay=0.1)
    dispatcher = URLDispatcher(GraphExplorer(graph), extractor, idle_timeout=5)
    dispatcher.submit("http://s.com/")

    task = asyncio.create_task(dispatcher.run())
    await asyncio.sleep(0.15)
    dispatcher.stop()
    result = await asyncio.wait_for(task, timeout=2)

    assert result.reason is CompletionReason.STOPPED
    assert extractor.running == 0
    assert 1 <= len(extractor.calls) < 11


@pytest.mark.asyncio()
async def test_cancel_aborts_in_flight_extraction():
    extractor = RecordingExtractor(delay=10)
    dispatcher = URLDispatcher(GraphExplorer({}), extractor, idle_timeout=5)
    dispatcher.submit("http://s.com/")

    task = asyncio.create_task(dispatcher.run())
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert dispatcher.result is not None
    assert dispatcher.result.reason is CompletionReason.CANCELLED
    assert dispatcher.result.visited_count == 1
    assert extractor.running == 0


@pytest.mark.asyncio()
async def test_fatal_extraction_error_propagates():
    class Broken(RecordingExtractor):
        async def extract(self, url):
            raise RuntimeError("browser died")

    dispatcher = URLDispatcher(GraphExplorer({}), Broken(), idle_timeout=IDLE)
    dispatcher.submit("http://s.com/")
    with pytest.raises(RuntimeError, match="browser died"):
        await dispatcher.run()


@pytest.mark.asyncio()
async def test_idle_waits_for_queued_discovery():
    class SlowPageExplorer(GraphExplorer):
        async def explore(self, url, emit):
            if url == "http://s.com/a":
                await asyncio.sleep(IDLE * 3)
            return await super().explore(url, emit)

    graph = {
        "http://s.com/": ["http://s.com/a", "http://s.com/b"],
        "http://s.com/b": ["http://s.com/c"],
    }
    explorer = SlowPageExplorer(graph)
    extractor = RecordingExtractor()
    dispatcher = URLDispatcher(explorer, extractor, idle_timeout=IDLE, discovery_workers=1)
    dispatcher.submit("http://s.com/")

    result = await dispatcher.run()

    assert result.reason is CompletionReason.IDLE
    assert sorted(explorer.calls) == ["http://s.com/", "http://s.com/a", "http://s.com/b", "http://s.com/c"]
    assert "http://s.com/c" in extractor.calls
    assert result.visited_count == 4
    assert dispatcher.pending_discovery == 0


def test_snapshot_before_completion():
    dispatcher = URLDispatcher(GraphExplorer({}), RecordingExtractor(), idle_timeout=IDLE)
    result = dispatcher.snapshot(CompletionReason.CANCELLED)
    assert result.reason is CompletionReason.CANCELLED
    assert result.visited_count == 0
    assert dispatcher.result is None
