# clip_scout/crawler/renderer.py
"""
Render-session layer: drives Chromium through Playwright.

Crawl logic only sees the :class:`RenderSession` protocol, so tests (or another
automation backend) can replace the browser without touching the dispatcher.
"""
from __future__ import annotations

import json
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Protocol

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from clip_scout.config import CrawlerConfig
from clip_scout.crawler.models import RenderedFields
from clip_scout.errors import ElementAbsentError, RenderError
from clip_scout.logger import logger

__all__ = ("RenderSession", "PlaywrightRenderer", "is_script_fault")

_BROWSER_ARGS = (
    "--disable-web-security",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-gpu",
)

# Messages of exceptions thrown by page scripts during evaluate().
_SCRIPT_FAULT_RE = re.compile(r"\b(?:Uncaught|TypeError|ReferenceError)\b")


def is_script_fault(message: str) -> bool:
    """True when an automation error was an exception thrown inside the page."""
    return bool(_SCRIPT_FAULT_RE.search(message))


class RenderSession(Protocol):
    """Capability used by the extraction orchestrator."""

    async def check_presence(self, url: str) -> str: ...

    async def extract_fields(self, url: str) -> RenderedFields: ...


def _by_id(element_id: str) -> str:
    return f"document.getElementById({json.dumps(element_id)})"


class PlaywrightRenderer:
    """One Chromium process for the whole crawl, one fresh context per phase."""

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        widget = config.widget
        self._presence_js = f"{_by_id(widget.thumbnails_id)}.innerHTML"
        self._product_id_js = f"{_by_id(widget.product_id_field)}.value"
        self._product_url_js = f"{_by_id(widget.product_url_field)}.value"
        self._frame_js = f"{_by_id(widget.container_id)}.contentWindow.document.body.outerHTML"
        self._container_selector = f"[id={json.dumps(widget.container_id)}]"

    async def __aenter__(self) -> PlaywrightRenderer:
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless, args=list(_BROWSER_ARGS)
            )
        except PlaywrightError:
            await self._playwright.stop()
            self._playwright = None
            raise
        if self.config.headless:
            logger.info("Headless mode is enabled. The browser runs without a visible UI.")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[Page]:
        if self._browser is None:
            raise RuntimeError("Renderer not started")
        context = await self._browser.new_context(user_agent=self.config.user_agent)
        try:
            page = await context.new_page()
            page.set_default_timeout(self.config.visible_timeout * 1000)
            page.set_default_navigation_timeout(self.config.navigation_timeout * 1000)
            yield page
        finally:
            await context.close()

    async def _evaluate(self, page: Page, url: str, expression: str) -> Any:
        try:
            return await page.evaluate(expression)
        except PlaywrightError as exc:
            if is_script_fault(exc.message):
                raise ElementAbsentError(url, exc.message.splitlines()[0]) from exc
            raise RenderError(url, exc.message) from exc

    async def check_presence(self, url: str) -> str:
        """Navigate, wait a fixed settle delay and return the thumbnails markup."""
        try:
            async with self._session() as page:
                await page.goto(url, wait_until=self.config.navigation_wait)
                await page.wait_for_timeout(self.config.settle_delay * 1000)
                captured = await self._evaluate(page, url, self._presence_js)
        except PlaywrightError as exc:
            raise RenderError(url, exc.message) from exc
        return "" if captured is None else str(captured)

    async def extract_fields(self, url: str) -> RenderedFields:
        """Navigate again, wait for the widget to become visible and read the fields."""
        try:
            async with self._session() as page:
                await page.goto(url, wait_until=self.config.navigation_wait)
                await page.wait_for_selector(self._container_selector, state="visible")
                product_id = await self._evaluate(page, url, self._product_id_js)
                product_url = await self._evaluate(page, url, self._product_url_js)
                frame_markup = await self._evaluate(page, url, self._frame_js)
        except PlaywrightError as exc:
            raise RenderError(url, exc.message) from exc
        return RenderedFields(
            product_id="" if product_id is None else str(product_id),
            product_url="" if product_url is None else str(product_url),
            frame_markup="" if frame_markup is None else str(frame_markup),
        )
