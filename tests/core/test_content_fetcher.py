import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from core.content_fetcher import ContentFetcher
from core.exceptions import FetchError
from utils.http_client import OptimizedHTTPClient, USER_AGENTS


async def listing_handler(request):
    request.app["seen_headers"].append(dict(request.headers))
    return web.Response(text="<html><h1>Beautiful Villa</h1></html>", content_type="text/html")


async def missing_handler(request):
    return web.Response(status=404, text="not here")


@pytest_asyncio.fixture
async def listing_server():
    app = web.Application()
    app["seen_headers"] = []
    app.router.add_get("/listing", listing_handler)
    app.router.add_get("/missing", missing_handler)
    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def fetcher():
    fetcher = ContentFetcher(http_client=OptimizedHTTPClient(), timeout=5)
    yield fetcher
    await fetcher.close()


class TestContentFetcher:
    @pytest.mark.asyncio
    async def test_fetch_returns_body(self, listing_server, fetcher):
        url = str(listing_server.make_url("/listing"))
        result = await fetcher.fetch(url)

        assert result.status == 200
        assert "Beautiful Villa" in result.text
        assert result.content_type.startswith("text/html")

    @pytest.mark.asyncio
    async def test_fetch_sends_browser_headers(self, listing_server, fetcher):
        await fetcher.fetch(str(listing_server.make_url("/listing")))

        headers = listing_server.app["seen_headers"][0]
        assert headers["User-Agent"] in USER_AGENTS
        assert headers["Accept"].startswith("text/html")

    @pytest.mark.asyncio
    async def test_non_2xx_raises_fetch_error(self, listing_server, fetcher):
        url = str(listing_server.make_url("/missing"))
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch(url)
        assert exc_info.value.status == 404
        assert exc_info.value.url == url

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["ftp://example.com/listing", "javascript:alert(1)", "not a url"])
    async def test_rejects_non_http_schemes(self, fetcher, url):
        with pytest.raises(FetchError):
            await fetcher.fetch(url)

    @pytest.mark.asyncio
    async def test_connection_failure_raises_fetch_error(self, fetcher):
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch("http://127.0.0.1:9/listing")
        assert exc_info.value.status is None
