# clip_scout/crawler/video_links.py
"""
Turns the markup of the clip widget iframe into YouTube watch URLs.
"""
from __future__ import annotations

from typing import Iterable, List

THUMBNAIL_MARKER = "i.ytimg.com/vi/"
WATCH_URL = "https://www.youtube.com/watch?v="


def parse_video_links(markup: str) -> List[str]:
    """
    Return watch URLs for every thumbnail token in *markup*, in first-seen order.

    Tokens look like ``src="//i.ytimg.com/vi/<id>/hqdefault.jpg"``; the JSON-escaped
    form ``src=\\"//i.ytimg.com/vi/<id>/...`` is accepted as well. Repeated ids are kept.
    """
    links: List[str] = []
    for token in markup.strip().split():
        if THUMBNAIL_MARKER not in token:
            continue
        rest = token.split(THUMBNAIL_MARKER, 1)[1]
        video_id = rest.split("/", 1)[0].rstrip("\"'\\")
        if video_id:
            links.append(WATCH_URL + video_id)
    return links


def join_video_links(links: Iterable[str]) -> str:
    """Comma-separated links; empty input gives an empty string."""
    return ",".join(links)
