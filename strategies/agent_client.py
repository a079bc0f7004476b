"""
Structured Extraction Agent Client

Submits a URL together with a site's JSON schema and prompt to a
Firecrawl-compatible extraction service and maps the structured answer onto a
PropertyRecord. The service may answer synchronously (``data`` in the first
response) or asynchronously (an ``id`` to poll until the job completes).

Every failure mode (missing credentials, transport error, non-2xx, malformed
or unsuccessful payload, timeout) is raised as AgentError / AgentTimeout for
the caller to handle.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

import config
from core.exceptions import AgentError, AgentTimeout
from extraction.core.property_record import PropertyRecord
from strategies.site_registry import SiteProfile, has_core_fields
from utils.http_client import OptimizedHTTPClient

logger = logging.getLogger(__name__)

PENDING_STATUSES = ("processing", "pending", "queued", "scraping")
FAILED_STATUSES = ("failed", "cancelled", "error")
# Keys under which extraction services have been seen to nest the payload
PAYLOAD_KEYS = ("llm_extraction", "extract")


class AgentClient:
    """Client for the structured extraction service."""

    def __init__(self, http_client: Optional[OptimizedHTTPClient] = None,
                 api_key: Optional[str] = None,
                 api_url: Optional[str] = None,
                 timeout: Optional[float] = None,
                 poll_interval: Optional[float] = None):
        self.http_client = http_client or OptimizedHTTPClient()
        self.api_key = api_key if api_key is not None else config.FIRECRAWL_API_KEY
        self.api_url = (api_url or config.FIRECRAWL_API_URL).rstrip("/")
        self.timeout = timeout or config.AGENT_TIMEOUT_SECONDS
        self.poll_interval = poll_interval or config.AGENT_POLL_INTERVAL_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def extract(self, url: str, profile: SiteProfile) -> PropertyRecord:
        """
        Extract ``url`` with ``profile``'s schema.

        Args:
            url: Listing URL
            profile: Site profile from the SiteRegistry

        Returns:
            PropertyRecord tagged with the profile's source name

        Raises:
            AgentTimeout: the service did not finish within ``timeout`` seconds
            AgentError: any other failure, including a result without title and price
        """
        if not self.is_configured:
            raise AgentError("Structured extraction service is not configured (FIRECRAWL_API_KEY missing)")

        try:
            payload = await asyncio.wait_for(self._run_extraction(url, profile), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise AgentTimeout(self.timeout)

        if not has_core_fields(payload, profile):
            raise AgentError(f"Extraction for {url} returned neither title nor price")

        record = profile.map(payload)
        logger.info(f"Agent extracted '{record.title}' from {url} using the {profile.name} schema")
        return record

    async def _run_extraction(self, url: str, profile: SiteProfile) -> Dict[str, Any]:
        body = {
            "urls": [url],
            "schema": profile.schema,
            "prompt": profile.prompt,
        }
        response = await self._request("POST", f"{self.api_url}/v1/extract", json=body)
        self._check_success(response)

        job_id = response.get("id")
        if response.get("data") is None and job_id:
            response = await self._poll(job_id)

        return self._payload(response)

    async def _poll(self, job_id: str) -> Dict[str, Any]:
        status_url = f"{self.api_url}/v1/extract/{job_id}"
        while True:
            await asyncio.sleep(self.poll_interval)
            response = await self._request("GET", status_url)
            self._check_success(response)
            status = str(response.get("status", "")).lower()
            if status == "completed":
                return response
            if status in FAILED_STATUSES:
                raise AgentError(f"Extraction job {job_id} ended with status '{status}': "
                                 f"{response.get('error', 'no details')}")
            if status and status not in PENDING_STATUSES:
                raise AgentError(f"Extraction job {job_id} reported unknown status '{status}'")
            logger.debug(f"Extraction job {job_id} still {status or 'pending'}")

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        # The shared session timeout is shorter than an extraction may take
        kwargs.setdefault("timeout", self.timeout)
        try:
            if method == "POST":
                response = await self.http_client.post(url, headers=headers, **kwargs)
            else:
                response = await self.http_client.get(url, headers=headers, **kwargs)
            async with response:
                text = await response.text()
                if not 200 <= response.status < 300:
                    raise AgentError(f"Extraction service returned HTTP {response.status}: {text[:200]}")
        except aiohttp.ClientError as e:
            raise AgentError(f"Extraction service request failed: {e}")

        try:
            data = json.loads(text)
        except ValueError:
            raise AgentError("Extraction service returned a non-JSON response")
        if not isinstance(data, dict):
            raise AgentError("Extraction service returned an unexpected response shape")
        return data

    @staticmethod
    def _check_success(response: Dict[str, Any]) -> None:
        if response.get("success") is False:
            raise AgentError(f"Extraction service reported failure: {response.get('error', 'unknown error')}")

    @staticmethod
    def _payload(response: Dict[str, Any]) -> Dict[str, Any]:
        data = response.get("data")
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            for key in PAYLOAD_KEYS:
                if isinstance(data.get(key), dict):
                    return data[key]
            return data
        raise AgentError("Extraction service response carried no structured data")

    async def close(self) -> None:
        await self.http_client.close()
