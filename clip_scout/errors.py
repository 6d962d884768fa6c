# clip_scout/errors.py
"""
Exception hierarchy shared by the crawler, the render layer and the output writers.
"""
from __future__ import annotations


class ClipScoutError(Exception):
    """Base class for ClipScout errors."""


class ElementAbsentError(ClipScoutError):
    """The page script threw while reading the widget: the widget is not on the page."""

    def __init__(self, url: str, detail: str = "") -> None:
        super().__init__(f"widget absent on {url}: {detail}" if detail else f"widget absent on {url}")
        self.url = url


class RenderError(ClipScoutError):
    """Unrecoverable browser automation fault; stops the crawl."""

    def __init__(self, url: str, detail: str) -> None:
        super().__init__(f"render session failed on {url}: {detail}")
        self.url = url


class OutputError(ClipScoutError):
    """A mandatory output file could not be opened or written."""


__all__ = ["ClipScoutError", "ElementAbsentError", "RenderError", "OutputError"]
