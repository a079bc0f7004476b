#!/usr/bin/env python3
"""
Shared HTTP Client for PropertyScrape

This module provides the pooled aiohttp client used by the content fetcher,
the structured extraction agent client and the translation backend.
"""

import aiohttp
import logging
from typing import Dict, Optional, Any
from aiohttp import TCPConnector, ClientTimeout, ClientSession
import random

logger = logging.getLogger(__name__)

# User agent rotation for better scraping success
USER_AGENTS = [
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:120.0) Gecko/20100101 Firefox/120.0'
]

BROWSER_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'es-PA,es;q=0.9,en-US;q=0.8,en;q=0.7',
    'DNT': '1',
    'Connection': 'keep-alive',
    'Upgrade-Insecure-Requests': '1'
}

class OptimizedHTTPClient:
    """Pooled HTTP client shared by every outbound call of the pipeline"""

    def __init__(self,
                 max_connections: int = 100,
                 max_connections_per_host: int = 30,
                 dns_cache_ttl: int = 300,
                 total_timeout: float = 30,
                 connect_timeout: float = 10):
        """
        Initialize the HTTP client. The connection pool is created lazily,
        inside the running event loop.

        Args:
            max_connections: Total connection limit across all hosts
            max_connections_per_host: Maximum connections per single host
            dns_cache_ttl: DNS cache TTL in seconds
            total_timeout: Default total request timeout in seconds
            connect_timeout: Connection timeout in seconds
        """
        self.max_connections = max_connections
        self.max_connections_per_host = max_connections_per_host
        self.dns_cache_ttl = dns_cache_ttl
        self.timeout = ClientTimeout(total=total_timeout, connect=connect_timeout)

        self.session: Optional[ClientSession] = None

        logger.info(f"OptimizedHTTPClient configured: max_conn={max_connections}, per_host={max_connections_per_host}")

    async def __aenter__(self) -> 'OptimizedHTTPClient':
        """Async context manager entry"""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def initialize(self):
        """Initialize the HTTP session"""
        if not self.session or self.session.closed:
            connector = TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections_per_host,
                ttl_dns_cache=self.dns_cache_ttl,
                use_dns_cache=True,
            )
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=self.timeout,
                headers=BROWSER_HEADERS
            )
            logger.info("HTTP session initialized")

    async def close(self):
        """Close the HTTP session and its connector"""
        if self.session and not self.session.closed:
            await self.session.close()
            logger.info("HTTP session closed")
        self.session = None

    def _with_user_agent(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        headers = dict(kwargs.get('headers') or {})
        if 'User-Agent' not in headers:
            headers['User-Agent'] = random.choice(USER_AGENTS)
        kwargs['headers'] = headers
        timeout = kwargs.get('timeout')
        if isinstance(timeout, (int, float)):
            kwargs['timeout'] = ClientTimeout(total=timeout)
        return kwargs

    async def get(self, url: str, **kwargs) -> aiohttp.ClientResponse:
        """
        Perform a GET request with a rotated browser User-Agent.

        Args:
            url: Target URL
            **kwargs: Additional request parameters; a numeric ``timeout`` is
                converted into a ClientTimeout

        Returns:
            aiohttp.ClientResponse object
        """
        await self.initialize()
        return await self.session.get(url, **self._with_user_agent(kwargs))

    async def post(self, url: str, **kwargs) -> aiohttp.ClientResponse:
        """
        Perform a POST request with a rotated browser User-Agent.

        Args:
            url: Target URL
            **kwargs: Additional request parameters

        Returns:
            aiohttp.ClientResponse object
        """
        await self.initialize()
        return await self.session.post(url, **self._with_user_agent(kwargs))
