"""
Content fetcher: direct HTTP retrieval of listing pages.

Every strategy of the pipeline may fall back to this component, so it never
lets aiohttp exceptions escape; all failures surface as FetchError.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import aiohttp

import config
from core.exceptions import FetchError
from utils.http_client import OptimizedHTTPClient

logger = logging.getLogger(__name__)


@dataclass
class FetchedContent:
    """Raw body of a fetched page and the metadata callers care about."""
    url: str
    status: int
    content_type: str
    text: str


class ContentFetcher:
    """Fetches raw HTML with browser-like headers. Read-only and safe to retry."""

    def __init__(self, http_client: Optional[OptimizedHTTPClient] = None,
                 timeout: Optional[float] = None):
        self.http_client = http_client or OptimizedHTTPClient()
        self.timeout = timeout or config.FETCH_TIMEOUT_SECONDS

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchedContent:
        """
        GET ``url`` and return its body as text.

        Args:
            url: Absolute http(s) URL
            timeout: Optional per-call total timeout in seconds

        Returns:
            FetchedContent with the final URL, status, content type and body

        Raises:
            FetchError: bad scheme, non-2xx status, network error or timeout
        """
        try:
            scheme = urlparse(url).scheme.lower()
        except ValueError:
            raise FetchError(url, "malformed URL")
        if scheme not in ("http", "https"):
            raise FetchError(url, f"unsupported URL scheme '{scheme or 'none'}'")

        try:
            response = await self.http_client.get(
                url,
                timeout=timeout or self.timeout,
                allow_redirects=True,
            )
            async with response:
                if not 200 <= response.status < 300:
                    raise FetchError(url, response.reason or "unexpected status", status=response.status)
                text = await response.text(errors="replace")
                content_type = response.headers.get("Content-Type", "")
                final_url = str(response.url)
        except FetchError:
            raise
        except asyncio.TimeoutError:
            raise FetchError(url, "request timed out")
        except aiohttp.ClientError as e:
            raise FetchError(url, f"network error: {e}")

        logger.info(f"Fetched {final_url} ({response.status}, {len(text)} chars)")
        return FetchedContent(url=final_url, status=response.status,
                              content_type=content_type, text=text)

    async def close(self) -> None:
        await self.http_client.close()
