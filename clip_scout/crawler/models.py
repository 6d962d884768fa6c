# clip_scout/crawler/models.py
"""
Data models for the ClipScout crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from clip_scout.crawler.video_links import join_video_links

_FIELD_BREAKS = str.maketrans({"\t": " ", "\r": " ", "\n": " "})


@dataclass(slots=True, frozen=True)
class RenderedFields:
    """Raw values read from the rendered product page."""

    product_id: str
    product_url: str
    frame_markup: str


@dataclass(slots=True, frozen=True)
class ProductRecord:
    """One extracted product: identifier, canonical URL and embedded video links."""

    product_id: str
    product_url: str
    video_links: Tuple[str, ...] = field(default_factory=tuple)

    def to_row(self) -> str:
        """Tab-separated line without the trailing newline."""
        return "\t".join(
            (
                self.product_id.translate(_FIELD_BREAKS),
                self.product_url.translate(_FIELD_BREAKS),
                join_video_links(self.video_links),
            )
        )


class CompletionReason(str, Enum):
    """Why the dispatcher loop ended."""

    IDLE = "idle"
    STOPPED = "stopped"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class CrawlResult:
    """Final state reported by the dispatcher."""

    reason: CompletionReason
    visited_count: int
    processed: Tuple[str, ...]
