"""
Shared test fixtures for PropertyScrape.
"""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock

from core.content_fetcher import FetchedContent
from core.job_store import InMemoryJobStore

LISTING_URL = "https://www.encuentra24.com/panama-es/bienes-raices-venta-de-propiedades-casas/casa-en-costa-del-este/123"
UNKNOWN_URL = "https://randomsite.example/property/9"

LISTING_HTML = """
<html>
<head>
    <title>Casa en Costa del Este | Encuentra24</title>
    <meta property="og:image" content="https://photos.encuentra24.com/t_or_fh_l/f/12/34/hero.jpg">
    <meta property="og:description" content="Hermosa casa con piscina">
</head>
<body>
    <nav><ul><li>Inicio</li><li>Contacto</li></ul></nav>
    <h1>Casa en Costa del Este</h1>
    <div class="price">$450,000</div>
    <div class="location">Costa del Este, Panamá</div>
    <div class="gallery">
        <img class="gallery-image" src="https://photos.encuentra24.com/t_or_fh_l/f/12/34/1.jpg">
        <img class="gallery-image" src="/f/12/34/2.jpg">
        <img class="gallery-image" src="https://photos.encuentra24.com/logo.png">
    </div>
    <div class="description">Casa de 4 habitaciones y 3 baños. Llame al 6666-7777.</div>
    <ul class="amenities"><li>Piscina</li><li>Terraza</li></ul>
</body>
</html>
"""


def make_fetched(html: str, url: str = LISTING_URL) -> FetchedContent:
    return FetchedContent(url=url, status=200, content_type="text/html", text=html)


@pytest.fixture
def listing_html():
    return LISTING_HTML


@pytest.fixture
def mock_fetcher():
    """ContentFetcher stand-in returning LISTING_HTML."""
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(side_effect=lambda url, timeout=None: make_fetched(LISTING_HTML, url))
    return fetcher


@pytest.fixture
def mock_agent_client():
    client = MagicMock()
    client.extract = AsyncMock()
    client.timeout = 120.0
    return client


@pytest_asyncio.fixture
async def job_store():
    return InMemoryJobStore()
