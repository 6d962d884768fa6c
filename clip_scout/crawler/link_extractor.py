# clip_scout/crawler/link_extractor.py
"""
Streaming anchor extraction for ClipScout.

The markup is tokenized while it downloads, so links from the top of a large
page reach the dispatcher before the body has finished arriving.
"""
from __future__ import annotations

import codecs
from typing import AsyncIterable, AsyncIterator, Iterable, Optional, Union

from lxml import etree

DEFAULT_ENCODING = "utf-8"


def text_decoder(encoding: Optional[str]) -> codecs.IncrementalDecoder:
    """Incremental decoder for *encoding*; unknown or missing charsets fall back to UTF-8.

    Undecodable bytes become U+FFFD instead of being reinterpreted as latin-1.
    """
    try:
        factory = codecs.getincrementaldecoder(encoding or DEFAULT_ENCODING)
    except LookupError:
        factory = codecs.getincrementaldecoder(DEFAULT_ENCODING)
    return factory(errors="replace")


def _hrefs(events: Iterable[tuple[str, etree._Element]]) -> Iterable[str]:
    for _event, element in events:
        href = element.get("href")
        if href:
            yield href.strip()


async def iter_anchor_hrefs(
    chunks: AsyncIterable[Union[str, bytes]], encoding: Optional[str] = None
) -> AsyncIterator[str]:
    """
    Yield the ``href`` of every ``<a>`` start tag found in *chunks*.

    Text chunks are parsed as is; byte chunks are decoded with *encoding*
    (UTF-8 by default). A tokenizer error ends the stream quietly: whatever
    was found up to that point has already been yielded.
    """
    decoder = text_decoder(encoding)
    parser = etree.HTMLPullParser(events=("start",), tag="a")
    try:
        async for chunk in chunks:
            text = decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
            if not text:
                continue
            parser.feed(text)
            for href in _hrefs(parser.read_events()):
                yield href
        tail = decoder.decode(b"", final=True)
        if tail:
            parser.feed(tail)
        parser.close()
        for href in _hrefs(parser.read_events()):
            yield href
    except etree.LxmlError:
        return
