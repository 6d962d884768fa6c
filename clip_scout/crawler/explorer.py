# clip_scout/crawler/explorer.py
"""
Page explorer: fetches raw markup and feeds in-domain links back to the dispatcher.
"""
from __future__ import annotations

import asyncio
from typing import Callable

from aiohttp import ClientError
from clip_scout.crawler.fetcher import Fetcher
from clip_scout.crawler.link_extractor import iter_anchor_hrefs
from clip_scout.logger import logger
from clip_scout.utils import is_in_domain, normalize_url


class PageExplorer:
    """Discovers links on raw (not rendered) pages of one domain."""

    def __init__(self, fetcher: Fetcher, base_url: str) -> None:
        self.fetcher = fetcher
        self.base_url = base_url

    async def explore(self, url: str, emit: Callable[[str], None]) -> int:
        """
        Stream *url* and call *emit* with every normalized in-domain link.

        Fetch failures are logged and end this branch only. Returns the
        number of links emitted.
        """
        logger.info("Visiting %s", url)
        emitted = 0
        try:
            async for href in iter_anchor_hrefs(self.fetcher.stream(url)):
                if is_in_domain(href, self.base_url):
                    emit(normalize_url(href))
                    emitted += 1
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Failed to fetch %s: %s", url, str(exc) or type(exc).__name__)
        logger.debug("%d links discovered on %s", emitted, url)
        return emitted
