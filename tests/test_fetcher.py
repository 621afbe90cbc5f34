"""
Tests for the Fetcher component

The aiohttp session is replaced with a mock so no network is used.
"""

import aiohttp
import pytest
from unittest.mock import MagicMock, AsyncMock

from bifurcate.core.base import UpstreamUnavailableError, UnsupportedContentError
from bifurcate.core.fetcher import Fetcher, CRAWL_MAX_BYTES


HTML = b"<html><head><title>Hi</title></head><body><p>Hello</p></body></html>"


class BodyStream:
    """Hands out a body in pieces and counts the bytes consumed"""

    def __init__(self, body, chunk_size=64 * 1024):
        self.body = body
        self.chunk_size = chunk_size
        self.consumed = 0

    def read(self, n=-1):
        size = self.chunk_size if n < 0 else min(n, self.chunk_size)
        chunk = self.body[self.consumed:self.consumed + size]
        self.consumed += len(chunk)
        return chunk


def make_response(status=200, body=HTML, headers=None, url="https://example.com/final"):
    response = MagicMock()
    response.status = status
    response.headers = headers if headers is not None else {'Content-Type': 'text/html; charset=utf-8'}
    response.url = url
    response.read = AsyncMock(return_value=body)
    response.content.read = AsyncMock(side_effect=BodyStream(body).read)
    return response


def attach(fetcher, response):
    context = fetcher.session.get.return_value
    context.__aenter__.return_value = response
    context.__aexit__.return_value = False


@pytest.fixture
def fetcher():
    """Fetcher with a mocked session"""
    fetcher = Fetcher({'timeout': 5}, max_document_bytes=CRAWL_MAX_BYTES)
    fetcher.session = MagicMock()
    return fetcher


@pytest.mark.asyncio
async def test_initialize_and_cleanup():
    fetcher = Fetcher({'user_agent': 'TestAgent/1.0'})
    assert not fetcher.is_initialized()

    await fetcher.initialize()
    assert fetcher.is_initialized()
    assert isinstance(fetcher.session, aiohttp.ClientSession)
    assert fetcher.session.headers['User-Agent'] == 'TestAgent/1.0'
    assert fetcher.session.headers['Cache-Control'] == 'no-cache'

    await fetcher.cleanup()
    assert fetcher.session is None
    assert not fetcher.is_initialized()


@pytest.mark.asyncio
async def test_fetch_document_success(fetcher):
    attach(fetcher, make_response(headers={
        'Content-Type': 'text/html; charset=utf-8',
        'Last-Modified': 'Tue, 05 Mar 2024 10:00:00 GMT',
    }))

    result = await fetcher.fetch_document("https://example.com/start")

    assert "<p>Hello</p>" in result.html
    assert result.final_url == "https://example.com/final"
    assert result.last_modified == 'Tue, 05 Mar 2024 10:00:00 GMT'
    assert fetcher.stats['succeeded'] == 1
    fetcher.session.get.assert_called_once_with("https://example.com/start", allow_redirects=True)


@pytest.mark.asyncio
async def test_client_error_status_maps_to_400(fetcher):
    attach(fetcher, make_response(status=404))

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        await fetcher.fetch_document("https://example.com/missing")

    assert str(excinfo.value) == "Source responded with status 404."
    assert excinfo.value.status == 400


@pytest.mark.asyncio
async def test_server_error_status_maps_to_502(fetcher):
    attach(fetcher, make_response(status=503))

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        await fetcher.fetch_document("https://example.com/")

    assert excinfo.value.status == 502


@pytest.mark.asyncio
async def test_non_html_rejected(fetcher):
    attach(fetcher, make_response(headers={'Content-Type': 'application/json'}))

    with pytest.raises(UnsupportedContentError, match="did not return HTML"):
        await fetcher.fetch_document("https://example.com/api")


@pytest.mark.asyncio
async def test_declared_length_over_limit_rejected(fetcher):
    response = make_response(headers={
        'Content-Type': 'text/html',
        'Content-Length': str(CRAWL_MAX_BYTES + 1),
    })
    attach(fetcher, response)

    with pytest.raises(UnsupportedContentError, match="exceeds the 2 MB safety limit"):
        await fetcher.fetch_document("https://example.com/big")
    response.content.read.assert_not_awaited()


@pytest.mark.asyncio
async def test_body_over_limit_rejected(fetcher):
    attach(fetcher, make_response(body=b"x" * (CRAWL_MAX_BYTES + 1)))

    with pytest.raises(UnsupportedContentError, match="safety limit"):
        await fetcher.fetch_document("https://example.com/big")


@pytest.mark.asyncio
async def test_empty_body_rejected(fetcher):
    attach(fetcher, make_response(body=b""))

    with pytest.raises(UnsupportedContentError, match="empty"):
        await fetcher.fetch_document("https://example.com/empty")


@pytest.mark.asyncio
async def test_network_failure_is_upstream_unavailable(fetcher):
    fetcher.session.get.side_effect = aiohttp.ClientError("connection refused")

    with pytest.raises(UpstreamUnavailableError, match="Unable to reach source URL."):
        await fetcher.fetch_document("https://example.com/")
    assert fetcher.stats['failed'] == 1


@pytest.mark.asyncio
async def test_fetch_returns_none_on_failure(fetcher):
    attach(fetcher, make_response(status=500))
    assert await fetcher.fetch("https://example.com/") is None


@pytest.mark.asyncio
async def test_fetch_text_accepts_any_content_type(fetcher):
    attach(fetcher, make_response(body=b"User-agent: *\nDisallow: /x", headers={'Content-Type': 'text/plain'}))
    assert await fetcher.fetch_text("https://example.com/robots.txt") == "User-agent: *\nDisallow: /x"


@pytest.mark.asyncio
async def test_fetch_text_none_on_error_status(fetcher):
    attach(fetcher, make_response(status=404))
    assert await fetcher.fetch_text("https://example.com/robots.txt") is None


@pytest.mark.asyncio
async def test_fetch_text_none_on_network_failure(fetcher):
    fetcher.session.get.side_effect = aiohttp.ClientError("boom")
    assert await fetcher.fetch_text("https://example.com/robots.txt") is None


@pytest.mark.asyncio
async def test_undeclared_oversize_body_read_only_to_ceiling(fetcher):
    stream = BodyStream(b"x" * (CRAWL_MAX_BYTES * 2))
    response = make_response(headers={'Content-Type': 'text/html'})
    response.content.read = AsyncMock(side_effect=stream.read)
    attach(fetcher, response)

    with pytest.raises(UnsupportedContentError, match="safety limit"):
        await fetcher.fetch_document("https://example.com/stream")

    assert stream.consumed == CRAWL_MAX_BYTES + 1
