"""
Status Fetcher Tests

The upstream is stubbed with httpx.MockTransport, so no nginx is needed.
"""
import asyncio

import httpx
import pytest

from rtmp import UpstreamError, UpstreamUnreachable, fetch_status

STAT_URL = "http://nginx.test/stat"


@pytest.mark.asyncio
async def test_returns_body_on_success():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<rtmp/>"))

    body = await fetch_status(STAT_URL, transport=transport)

    assert body == b"<rtmp/>"


@pytest.mark.asyncio
async def test_requests_the_configured_url():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, content=b"")

    await fetch_status(STAT_URL, transport=httpx.MockTransport(handler))

    assert seen == [STAT_URL]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [404, 500, 503])
async def test_non_success_status_raises_upstream_error(status):
    transport = httpx.MockTransport(lambda request: httpx.Response(status))

    with pytest.raises(UpstreamError) as exc_info:
        await fetch_status(STAT_URL, transport=transport)

    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_timeout_raises_upstream_unreachable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamUnreachable, match="timed out after 0.5s"):
        await fetch_status(STAT_URL, timeout=0.5, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_connection_refused_raises_upstream_unreachable():
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(UpstreamUnreachable, match="Connection refused"):
        await fetch_status(STAT_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_slow_trickling_body_is_cut_off_at_the_timeout():
    """
    Each chunk arrives well within the per-read timeout, but the whole body
    takes longer than the configured timeout.
    """
    async def trickle():
        for _ in range(20):
            await asyncio.sleep(0.05)
            yield b"<"

    async def handler(request):
        return httpx.Response(200, content=trickle())

    loop = asyncio.get_running_loop()
    started = loop.time()
    with pytest.raises(UpstreamUnreachable, match="timed out after 0.2s"):
        await fetch_status(STAT_URL, timeout=0.2, transport=httpx.MockTransport(handler))

    assert loop.time() - started < 0.9


@pytest.mark.asyncio
async def test_invalid_url_raises_upstream_unreachable():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b""))

    with pytest.raises(UpstreamUnreachable, match="invalid URL"):
        await fetch_status("http://nginx.test:notaport/stat", transport=transport)
