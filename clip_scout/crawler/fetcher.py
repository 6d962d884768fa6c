# clip_scout/crawler/fetcher.py
"""
Fetcher module: streams raw page markup over HTTP for link discovery.
"""
from __future__ import annotations

from typing import AsyncIterator

from aiohttp import ClientSession
from clip_scout.config import CrawlerConfig
from clip_scout.crawler.link_extractor import text_decoder


class Fetcher:
    """Single GET per URL, no retries; the body is handed out chunk by chunk."""

    def __init__(self, session: ClientSession, config: CrawlerConfig) -> None:
        self.session = session
        self.config = config

    async def stream(self, url: str) -> AsyncIterator[str]:
        """
        Yield the response body of *url* as text, ``fetch_chunk_size`` bytes at a time.

        The body is decoded with the charset from ``Content-Type`` (UTF-8 when
        absent). Raises ``aiohttp.ClientError`` (``ClientResponseError`` for
        non-2xx) or ``asyncio.TimeoutError``; the caller decides how to report them.
        """
        async with self.session.get(url, raise_for_status=True) as resp:
            decoder = text_decoder(resp.charset)
            async for chunk in resp.content.iter_chunked(self.config.fetch_chunk_size):
                text = decoder.decode(chunk)
                if text:
                    yield text
            tail = decoder.decode(b"", final=True)
            if tail:
                yield tail
