import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from core.exceptions import AgentError, AgentTimeout
from strategies.agent_client import AgentClient
from strategies.site_registry import SiteRegistry
from tests.conftest import LISTING_URL
from utils.http_client import OptimizedHTTPClient

ENCUENTRA24_DATA = {
    "encuentra24_title": "Casa en Costa del Este",
    "encuentra24_price": "$450,000",
    "encuentra24_description": "...",
    "encuentra24_amenities": [{"value": "Pool"}],
}


class FakeExtractionService:
    """Firecrawl-style /v1/extract endpoint with scripted responses."""

    def __init__(self):
        self.requests = []
        self.submit_response = {"success": True, "data": ENCUENTRA24_DATA}
        self.submit_status = 200
        self.poll_responses = []
        self.delay = 0

    async def submit(self, request):
        self.requests.append({"headers": dict(request.headers), "body": await request.json()})
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.json_response(self.submit_response, status=self.submit_status)

    async def poll(self, request):
        response = self.poll_responses.pop(0) if self.poll_responses else {"success": True, "status": "processing"}
        return web.json_response(response)


@pytest_asyncio.fixture
async def service():
    fake = FakeExtractionService()
    app = web.Application()
    app.router.add_post("/v1/extract", fake.submit)
    app.router.add_get("/v1/extract/{job_id}", fake.poll)
    server = TestServer(app)
    await server.start_server()
    fake.url = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def client(service):
    client = AgentClient(api_key="test-key", api_url=service.url, timeout=5, poll_interval=0.01)
    yield client
    await client.close()


@pytest.fixture
def profile():
    return SiteRegistry().lookup(LISTING_URL)


class TestAgentClient:
    @pytest.mark.asyncio
    async def test_synchronous_answer_is_mapped(self, service, client, profile):
        record = await client.extract(LISTING_URL, profile)

        assert record.title == "Casa en Costa del Este"
        assert record.price == "$450,000"
        assert record.features == ["Pool"]
        assert record.source == "Encuentra24"

    @pytest.mark.asyncio
    async def test_request_shape(self, service, client, profile):
        await client.extract(LISTING_URL, profile)

        request = service.requests[0]
        assert request["headers"]["Authorization"] == "Bearer test-key"
        assert request["body"]["urls"] == [LISTING_URL]
        assert request["body"]["schema"] == profile.schema
        assert request["body"]["prompt"] == profile.prompt

    @pytest.mark.asyncio
    async def test_polls_until_completed(self, service, client, profile):
        service.submit_response = {"success": True, "id": "job-1"}
        service.poll_responses = [
            {"success": True, "status": "processing"},
            {"success": True, "status": "completed", "data": ENCUENTRA24_DATA},
        ]

        record = await client.extract(LISTING_URL, profile)
        assert record.title == "Casa en Costa del Este"

    @pytest.mark.asyncio
    async def test_nested_payload(self, service, client, profile):
        service.submit_response = {"success": True, "data": {"llm_extraction": ENCUENTRA24_DATA}}
        record = await client.extract(LISTING_URL, profile)
        assert record.price == "$450,000"

    @pytest.mark.asyncio
    async def test_failed_job_raises(self, service, client, profile):
        service.submit_response = {"success": True, "id": "job-2"}
        service.poll_responses = [{"success": True, "status": "failed", "error": "blocked"}]

        with pytest.raises(AgentError, match="blocked"):
            await client.extract(LISTING_URL, profile)

    @pytest.mark.asyncio
    async def test_unsuccessful_response_raises(self, service, client, profile):
        service.submit_response = {"success": False, "error": "Insufficient credits"}
        with pytest.raises(AgentError, match="Insufficient credits"):
            await client.extract(LISTING_URL, profile)

    @pytest.mark.asyncio
    async def test_http_error_raises(self, service, client, profile):
        service.submit_status = 500
        service.submit_response = {"error": "internal"}
        with pytest.raises(AgentError, match="HTTP 500"):
            await client.extract(LISTING_URL, profile)

    @pytest.mark.asyncio
    async def test_result_without_title_or_price_is_unsuccessful(self, service, client, profile):
        service.submit_response = {"success": True, "data": {"encuentra24_description": "Solo texto"}}
        with pytest.raises(AgentError, match="neither title nor price"):
            await client.extract(LISTING_URL, profile)

    @pytest.mark.asyncio
    async def test_non_dict_payload_raises(self, service, client, profile):
        service.submit_response = {"success": True, "data": "not structured"}
        with pytest.raises(AgentError):
            await client.extract(LISTING_URL, profile)

    @pytest.mark.asyncio
    async def test_timeout(self, service, profile):
        service.delay = 1
        client = AgentClient(api_key="test-key", api_url=service.url, timeout=0.1)
        try:
            with pytest.raises(AgentTimeout):
                await client.extract(LISTING_URL, profile)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_agent_timeout_overrides_shorter_session_timeout(self, service, profile):
        service.delay = 0.5
        http_client = OptimizedHTTPClient(total_timeout=0.2)
        client = AgentClient(http_client=http_client, api_key="test-key", api_url=service.url, timeout=5)
        try:
            record = await client.extract(LISTING_URL, profile)
        finally:
            await client.close()

        assert record.title == "Casa en Costa del Este"

    @pytest.mark.asyncio
    async def test_missing_api_key(self, profile):
        client = AgentClient(api_key="", api_url="http://127.0.0.1:9")
        assert not client.is_configured
        with pytest.raises(AgentError, match="not configured"):
            await client.extract(LISTING_URL, profile)
