"""
HTML processing utilities for PropertyScrape.

This module provides the parsing and text-normalization helpers shared by the
DOM extractor and the image harvester:
- BeautifulSoup parsing with the lxml parser
- Entity decoding and whitespace/control-character normalization
- URL resolution and hostname helpers
"""

import html
import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

# Configure logging
logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r'\s+')
_CONTROL_CHARS_RE = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')

def parse_html(html_content: str, parser: str = 'lxml') -> BeautifulSoup:
    """
    Parse HTML content with BeautifulSoup using the lxml parser for better performance.

    Args:
        html_content: HTML content to parse
        parser: Parser to use ('lxml' recommended for performance)

    Returns:
        BeautifulSoup object
    """
    try:
        return BeautifulSoup(html_content or "", parser)
    except Exception as e:
        logger.warning(f"Failed to parse with {parser}: {str(e)}. Falling back to html.parser")
        return BeautifulSoup(html_content or "", 'html.parser')

def decode_entities(text: str) -> str:
    """Decode named, decimal and hex HTML entities."""
    if not text:
        return ""
    return html.unescape(text)

def clean_text(text: Optional[str]) -> str:
    """
    Normalize a text fragment pulled out of HTML.

    Decodes entities, collapses runs of whitespace to a single space and
    strips control characters.
    """
    if not text:
        return ""
    cleaned = decode_entities(text)
    cleaned = _WHITESPACE_RE.sub(' ', cleaned).strip()
    return _CONTROL_CHARS_RE.sub('', cleaned)

def resolve_url(candidate: str, base_url: str) -> Optional[str]:
    """
    Resolve ``candidate`` against ``base_url``.

    Returns None when the result is not an absolute http(s) URL.
    """
    if not candidate:
        return None
    candidate = candidate.strip()
    if candidate.startswith('data:') or candidate.startswith('javascript:'):
        return None
    try:
        resolved = urljoin(base_url, candidate)
        parsed = urlparse(resolved)
    except ValueError:
        return None
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        return None
    return resolved

def get_hostname(url: str) -> str:
    """Lowercased hostname of ``url`` without a leading ``www.``; empty when unparsable."""
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname

def host_matches(hostname: str, domain: str) -> bool:
    """True when ``hostname`` is ``domain`` or one of its subdomains."""
    return hostname == domain or hostname.endswith("." + domain)
