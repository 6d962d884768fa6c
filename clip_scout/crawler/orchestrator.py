# clip_scout/crawler/orchestrator.py
"""
Two-phase extraction of a product record from a rendered page.

Phase 1 probes for the clip widget after a fixed settle delay. Only when the
probe returns content does phase 2 open a new session, wait for the widget to
become visible and read the product fields and the widget iframe.
"""
from __future__ import annotations

from typing import Optional

from clip_scout.crawler.models import ProductRecord
from clip_scout.crawler.renderer import RenderSession
from clip_scout.crawler.video_links import parse_video_links
from clip_scout.errors import ElementAbsentError, RenderError
from clip_scout.logger import logger
from clip_scout.report.tsv_report import RecordWriter

EMPTY_CAPTURE = "0"


def has_widget(capture: str) -> bool:
    """An empty probe result or the literal ``"0"`` means no widget."""
    return bool(capture) and capture != EMPTY_CAPTURE


class ExtractionOrchestrator:
    """Runs presence check and field extraction for one URL at a time."""

    def __init__(self, renderer: RenderSession, writer: RecordWriter) -> None:
        self.renderer = renderer
        self.writer = writer
        self.records = 0
        self.misses = 0

    async def extract(self, url: str) -> Optional[ProductRecord]:
        """
        Produce the ProductRecord for *url*, or None if the page has no widget.

        RenderError is logged and re-raised: the crawl cannot continue
        without a working browser.
        """
        try:
            capture = await self.renderer.check_presence(url)
        except ElementAbsentError as exc:
            logger.info("No widget on page %s (%s)", url, exc)
            self.misses += 1
            return None
        except RenderError as exc:
            logger.critical("%s", exc)
            raise

        if not has_widget(capture):
            logger.info("No widget on page %s", url)
            self.misses += 1
            return None

        try:
            fields = await self.renderer.extract_fields(url)
        except ElementAbsentError as exc:
            logger.critical("Widget disappeared while extracting %s: %s", url, exc)
            raise RenderError(url, str(exc)) from exc
        except RenderError as exc:
            logger.critical("%s", exc)
            raise

        record = ProductRecord(
            product_id=fields.product_id,
            product_url=fields.product_url,
            video_links=tuple(parse_video_links(fields.frame_markup)),
        )
        logger.info("Product %s on %s: %d video(s)", record.product_id, url, len(record.video_links))
        self.writer.append(record)
        self.records += 1
        return record
