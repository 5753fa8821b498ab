"""One scrape: fetch -> parse -> map -> render."""

from __future__ import annotations

import logging

import httpx

from overlay import MetadataOverlay
from rtmp.fetcher import DEFAULT_TIMEOUT, fetch_status
from rtmp.parser import parse_status

from .mapper import map_families
from .renderer import render

logger = logging.getLogger(__name__)


async def scrape(
    url: str,
    overlay: MetadataOverlay,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """Run the whole pipeline and return the exposition payload.

    Any :class:`rtmp.ScrapeError` propagates unchanged; no partial output is
    ever produced.
    """
    raw = await fetch_status(url, timeout=timeout, transport=transport)
    doc = parse_status(raw)
    payload = render(map_families(doc, overlay))
    logger.debug(
        "scraped %s: %d applications, %d streams",
        url, len(doc.applications), len(doc.streams()),
    )
    return payload
