"""
Image Harvester Module

Collects, filters and orders candidate listing photos from raw HTML,
independently of which strategy produced the textual fields.

Order of discovery:
1. The Open Graph image (hero image)
2. Gallery selectors chosen by hostname, stopping early once enough are found
3. A site-wide <img> scan with a minimum-size rule when galleries were sparse
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from bs4 import Tag

import config
from core.service_interface import BaseService
from extraction.selectors import (
    GALLERY_SELECTORS,
    GENERIC_GALLERY_SELECTORS,
    IMAGE_CDN_FRAGMENTS,
    IMAGE_DENYLIST,
    IMAGE_EXTENSIONS,
    IMAGE_SOURCE_ATTRIBUTES,
)
from utils.html_utils import get_hostname, host_matches, parse_html, resolve_url

logger = logging.getLogger(__name__)

GALLERY_SHORT_CIRCUIT = 5
SITE_WIDE_SCAN_THRESHOLD = 3
MIN_IMAGE_DIMENSION = 200

_DIMENSION_RE = re.compile(r'^\s*(\d+)')


def is_valid_image_url(url: Optional[str]) -> bool:
    """
    Check an absolute image URL against the harvesting rules.

    The URL must be http(s), contain no denylisted fragment and either carry a
    known image extension or be served from a known image CDN.
    """
    if not url or not isinstance(url, str) or not url.startswith("http"):
        return False
    lowered = url.lower()
    try:
        parsed = urlparse(lowered)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    if any(term in lowered for term in IMAGE_DENYLIST):
        return False
    if any(ext in parsed.path for ext in IMAGE_EXTENSIONS):
        return True
    return any(fragment in parsed.netloc or fragment in parsed.path for fragment in IMAGE_CDN_FRAGMENTS)


def merge_images(primary: Iterable[str], secondary: Iterable[str],
                 limit: Optional[int] = None) -> List[str]:
    """
    Stable set-union of two image lists.

    Keeps the order of ``primary`` when it holds any valid image (otherwise of
    ``secondary``) and appends the other list's unique members. Invalid URLs are
    dropped and the result is capped at ``limit``.
    """
    limit = limit or config.MAX_IMAGES
    primary = [url for url in (primary or []) if is_valid_image_url(url)]
    secondary = [url for url in (secondary or []) if is_valid_image_url(url)]
    if not primary:
        primary, secondary = secondary, []

    merged: List[str] = []
    seen = set()
    for url in list(primary) + list(secondary):
        if url not in seen:
            seen.add(url)
            merged.append(url)
    return merged[:limit]


class ImageHarvester(BaseService):
    """Finds listing photos in HTML."""

    def __init__(self, gallery_selectors: Optional[Dict[str, List[str]]] = None,
                 max_images: Optional[int] = None):
        self.gallery_selectors = gallery_selectors or GALLERY_SELECTORS
        self.max_images = max_images or config.MAX_IMAGES
        self._initialized = False

    @property
    def name(self) -> str:
        return "image_harvester"

    def initialize(self, config: Optional[Dict[str, Any]] = None) -> None:
        if config and config.get("max_images"):
            self.max_images = int(config["max_images"])
        self._initialized = True

    def shutdown(self) -> None:
        self._initialized = False

    def selectors_for(self, url: str) -> List[str]:
        """Gallery selectors curated for the URL's host, or the generic list."""
        hostname = get_hostname(url)
        for domain, selectors in self.gallery_selectors.items():
            if host_matches(hostname, domain):
                return selectors
        return GENERIC_GALLERY_SELECTORS

    def harvest(self, html: str, base_url: str) -> List[str]:
        """
        Produce a deduplicated, filtered, ordered list of image URLs.

        Args:
            html: Raw page HTML
            base_url: URL the HTML was fetched from; relative sources resolve against it

        Returns:
            At most ``max_images`` absolute URLs, Open Graph image first
        """
        if not html:
            return []
        soup = parse_html(html)
        images: List[str] = []
        seen = set()

        def add(candidate: Optional[str]) -> None:
            resolved = resolve_url(candidate, base_url) if candidate else None
            if resolved and resolved not in seen and is_valid_image_url(resolved):
                seen.add(resolved)
                images.append(resolved)

        og_image = soup.find("meta", attrs={"property": "og:image"})
        if og_image is not None:
            add(og_image.get("content"))

        for selector in self.selectors_for(base_url):
            if len(images) >= GALLERY_SHORT_CIRCUIT:
                break
            try:
                elements = soup.select(selector)
            except Exception as e:
                logger.debug(f"Gallery selector {selector!r} failed: {e}")
                continue
            for element in elements:
                add(_image_source(element))

        if len(images) < SITE_WIDE_SCAN_THRESHOLD:
            for element in soup.find_all("img"):
                if _is_large_enough(element):
                    add(_image_source(element))

        logger.debug(f"Harvested {len(images)} images from {base_url}")
        return images[:self.max_images]


def _image_source(element: Tag) -> Optional[str]:
    for attr in IMAGE_SOURCE_ATTRIBUTES:
        value = element.get(attr)
        # Lazy-loading pages put a data: placeholder in src
        if isinstance(value, str) and value.strip() and not value.strip().startswith("data:"):
            return value.strip()
    return None


def _is_large_enough(element: Tag) -> bool:
    """True unless width/height attributes are present and both are <= MIN_IMAGE_DIMENSION."""
    dimensions = []
    for attr in ("width", "height"):
        match = _DIMENSION_RE.match(str(element.get(attr) or ""))
        if match:
            dimensions.append(int(match.group(1)))
    if not dimensions:
        return True
    return max(dimensions) > MIN_IMAGE_DIMENSION
