"""Fetch the raw ``/stat`` document from nginx-rtmp over HTTP."""

from __future__ import annotations

import asyncio
import logging

import httpx

from .errors import UpstreamError, UpstreamUnreachable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


async def fetch_status(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """GET ``url`` once and return the response body.

    No retries: a failure aborts the current scrape and is reported to the
    caller. ``transport`` lets tests plug in an ``httpx.MockTransport``.

    httpx applies ``timeout`` to each connect and read on its own, so the
    whole request, body included, is also bounded by ``asyncio.wait_for``.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await asyncio.wait_for(client.get(url), timeout)
    except (httpx.TimeoutException, asyncio.TimeoutError) as e:
        raise UpstreamUnreachable(url, f"timed out after {timeout}s") from e
    except httpx.TransportError as e:
        raise UpstreamUnreachable(url, str(e) or type(e).__name__) from e
    except httpx.InvalidURL as e:
        raise UpstreamUnreachable(url, f"invalid URL: {e}") from e

    if not resp.is_success:
        raise UpstreamError(url, resp.status_code)

    logger.debug("fetched %d bytes from %s", len(resp.content), url)
    return resp.content
