"""
DOM Extractor Module

Best-effort extraction of listing fields from raw HTML. Every field is looked
up through an ordered chain of strategies (site-specific selectors, generic
CSS selectors, meta tags, JSON-LD, text patterns) and the first non-empty
value wins. Nothing in here raises on bad markup: a failing selector is
logged and skipped, and fields that cannot be found stay empty.
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup

import config
from core.service_interface import BaseService
from extraction.core.property_record import PropertyRecord
from extraction.selectors import (
    FEATURE_CONTAINERS,
    FIELD_SELECTORS,
    INVALID_FEATURE_KEYWORDS,
    JSONLD_PROPERTIES,
    NAVIGATION_WORDS,
    SITE_FIELD_SELECTORS,
)
from utils.html_utils import clean_text, get_hostname, host_matches, parse_html

# Configure logging
logger = logging.getLogger(__name__)

FALLBACK_SOURCE = "HTML Fallback"

SCALAR_FIELDS = ["title", "price", "location", "bedrooms", "bathrooms", "area", "description"]

MAX_TITLE_LENGTH = 200

_META_SELECTOR_RE = re.compile(r'^meta\[(?:(name|property)=)?([^\]]+)\]$')

# Text patterns with plausibility bounds on the captured number
TEXT_PATTERNS = {
    "bedrooms": (
        [
            re.compile(r'(\d+)\s*(?:bedrooms?|beds?|habitaci[oó]n(?:es)?|rec[aá]maras?|cuartos?|dormitorios?)\b', re.IGNORECASE),
            re.compile(r'(?:bedrooms?|habitaciones|dormitorios)[:\s]*(\d+)', re.IGNORECASE),
        ],
        1, 19,
    ),
    "bathrooms": (
        [
            re.compile(r'(\d+(?:\.\d+)?)\s*(?:bathrooms?|baths?|ba[ñn]os?)\b', re.IGNORECASE),
            re.compile(r'(?:bathrooms?|ba[ñn]os)[:\s]*(\d+(?:\.\d+)?)', re.IGNORECASE),
        ],
        1, 19,
    ),
    "area": (
        [
            re.compile(r'(\d+(?:[,.]\d+)*)\s*(?:m2|m²|metros?\s*cuadrados?)', re.IGNORECASE),
            re.compile(r'(\d+(?:[,.]\d+)*)\s*(?:sq\.?\s*ft|sqft|square\s*feet)', re.IGNORECASE),
        ],
        21, 99999,
    ),
}


class DOMExtractor(BaseService):
    """Heuristic, selector-driven extraction of a PropertyRecord from HTML."""

    def __init__(self, field_selectors: Optional[Dict[str, List[str]]] = None,
                 site_selectors: Optional[Dict[str, Dict[str, Any]]] = None):
        self.field_selectors = field_selectors or FIELD_SELECTORS
        self.site_selectors = site_selectors if site_selectors is not None else SITE_FIELD_SELECTORS
        self._initialized = False

    @property
    def name(self) -> str:
        return "dom_extractor"

    def initialize(self, config: Optional[Dict[str, Any]] = None) -> None:
        if config and config.get("site_selectors"):
            self.site_selectors = {**self.site_selectors, **config["site_selectors"]}
        self._initialized = True

    def shutdown(self) -> None:
        self._initialized = False

    def extract(self, html: str, url: str) -> PropertyRecord:
        """
        Extract a partial PropertyRecord from ``html``.

        Args:
            html: Raw page HTML
            url: Page URL, used to pick site-specific selectors

        Returns:
            PropertyRecord with every field it could find; never raises
        """
        soup = parse_html(html)

        site_record = self._extract_site_specific(soup, url)
        if site_record is not None:
            return site_record

        values = {}
        jsonld_items = self._load_jsonld(soup)
        body_text = clean_text(soup.body.get_text(" ")) if soup.body else ""

        for field_name in SCALAR_FIELDS:
            value = self.select_first(soup, self.field_selectors.get(field_name, []))
            if not value:
                value = self._jsonld_value(jsonld_items, JSONLD_PROPERTIES.get(field_name, []))
            if not value and field_name in TEXT_PATTERNS:
                value = self._scan_text(body_text, field_name)
            values[field_name] = value

        if not values["description"]:
            values["description"] = self._longest_paragraph(soup)

        record = PropertyRecord(
            title=values["title"][:MAX_TITLE_LENGTH],
            price=values["price"],
            location=values["location"],
            bedrooms=values["bedrooms"] or None,
            bathrooms=values["bathrooms"] or None,
            area=values["area"] or None,
            description=values["description"][:config.MAX_DESCRIPTION_LENGTH],
            features=self.extract_features(soup),
            source=FALLBACK_SOURCE,
        )
        logger.debug(f"DOM extraction for {url}: title={record.title!r} price={record.price!r}")
        return record

    def select_first(self, soup: BeautifulSoup, selectors: Iterable[str]) -> str:
        """
        Return the first non-empty, cleaned match among ``selectors``.

        Each selector is tried in isolation; an invalid selector is skipped.
        """
        for selector in selectors:
            try:
                value = self._select_value(soup, selector)
            except Exception as e:
                logger.debug(f"Selector {selector!r} failed: {e}")
                continue
            if value:
                return value
        return ""

    def _select_value(self, soup: BeautifulSoup, selector: str) -> str:
        meta_match = _META_SELECTOR_RE.match(selector)
        if meta_match:
            attr, key = meta_match.groups()
            attrs = [attr] if attr else ["property", "name"]
            for attr_name in attrs:
                tag = soup.find("meta", attrs={attr_name: key})
                if tag is not None and tag.get("content"):
                    value = clean_text(tag["content"])
                    if value:
                        return value
            return ""

        for element in soup.select(selector):
            value = clean_text(element.get_text(" "))
            if value:
                return value
        return ""

    def _extract_site_specific(self, soup: BeautifulSoup, url: str) -> Optional[PropertyRecord]:
        hostname = get_hostname(url)
        for domain, selectors in self.site_selectors.items():
            if not host_matches(hostname, domain):
                continue
            values = {
                field_name: self.select_first(soup, selectors.get(field_name, []))
                for field_name in SCALAR_FIELDS
            }
            if not (values["title"] and values["price"]):
                logger.debug(f"Site-specific selectors for {domain} found no title/price, using generic extraction")
                return None

            features = []
            for selector in selectors.get("features", []):
                try:
                    elements = soup.select(selector)
                except Exception as e:
                    logger.debug(f"Selector {selector!r} failed: {e}")
                    continue
                for element in elements:
                    text = clean_text(element.get_text(" "))
                    if text:
                        features.append(text)

            return PropertyRecord(
                title=values["title"][:MAX_TITLE_LENGTH],
                price=values["price"],
                location=values["location"],
                bedrooms=values["bedrooms"] or None,
                bathrooms=values["bathrooms"] or None,
                area=values["area"] or None,
                description=values["description"][:config.MAX_DESCRIPTION_LENGTH],
                features=features[:config.MAX_FEATURES],
                source=selectors.get("source", domain),
            )
        return None

    def _load_jsonld(self, soup: BeautifulSoup) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            try:
                payload = json.loads(script.string or script.get_text() or "{}")
            except (ValueError, TypeError):
                continue
            stack = payload if isinstance(payload, list) else [payload]
            for item in stack:
                if not isinstance(item, dict):
                    continue
                items.append(item)
                graph = item.get("@graph")
                if isinstance(graph, list):
                    items.extend(entry for entry in graph if isinstance(entry, dict))
        return items

    def _jsonld_value(self, items: List[Dict[str, Any]], properties: List[str]) -> str:
        for item in items:
            for prop in properties:
                value = item.get(prop)
                if value is None and prop == "price":
                    offers = item.get("offers")
                    if isinstance(offers, list):
                        offers = offers[0] if offers else None
                    if isinstance(offers, dict) and offers.get("price") is not None:
                        currency = offers.get("priceCurrency", "")
                        value = f"{currency} {offers['price']}".strip()
                text = _jsonld_to_text(value)
                if text:
                    return text
        return ""

    def _scan_text(self, text: str, field_name: str) -> str:
        patterns, low, high = TEXT_PATTERNS[field_name]
        for pattern in patterns:
            for match in pattern.finditer(text):
                number = match.group(1).replace(",", "")
                try:
                    amount = float(number)
                except ValueError:
                    continue
                if low <= amount <= high:
                    return clean_text(match.group(0))
        return ""

    def _longest_paragraph(self, soup: BeautifulSoup) -> str:
        best = ""
        for paragraph in soup.find_all("p"):
            if paragraph.find_parent(["nav", "footer", "header", "script", "style", "noscript"]):
                continue
            text = clean_text(paragraph.get_text(" "))
            lowered = text.lower()
            if len(text) <= 50 or "cookie" in lowered or "privacy" in lowered or "{" in text:
                continue
            if len(text) > len(best):
                best = text
        return best

    def extract_features(self, soup: BeautifulSoup) -> List[str]:
        """
        Collect feature bullet points from content containers.

        Falls back to every list item outside navigation chrome when the
        content containers yield nothing.
        """
        features: List[str] = []
        seen = set()

        def collect(items, skip_navigation: bool):
            for item in items:
                text = clean_text(item.get_text(" "))[:60].strip()
                key = text.lower()
                if not is_valid_feature(text) or key in seen:
                    continue
                if skip_navigation and key in NAVIGATION_WORDS:
                    continue
                seen.add(key)
                features.append(text)
                if len(features) >= config.MAX_FEATURES:
                    return

        try:
            collect(soup.select(", ".join(f"{container} li" for container in FEATURE_CONTAINERS)),
                    skip_navigation=False)
        except Exception as e:
            logger.debug(f"Feature container selectors failed: {e}")

        if not features:
            items = [li for li in soup.find_all("li")
                     if not li.find_parent(["nav", "header", "footer"])]
            collect(items, skip_navigation=True)

        return features[:config.MAX_FEATURES]


def is_valid_feature(text: str) -> bool:
    """Reject empty, oversized and contact/legal boilerplate bullet points."""
    if not text or len(text) < 3 or len(text) > 100:
        return False
    lowered = text.lower()
    return not any(keyword in lowered for keyword in INVALID_FEATURE_KEYWORDS)


def _jsonld_to_text(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return clean_text(value)
    if isinstance(value, dict):
        if "value" in value:
            unit = value.get("unitText") or value.get("unitCode") or ""
            return clean_text(f"{value['value']} {unit}")
        parts = []
        for key in ("streetAddress", "addressLocality", "addressRegion", "addressCountry"):
            part = value.get(key)
            if isinstance(part, dict):
                part = part.get("name")
            if isinstance(part, str) and part.strip():
                parts.append(part)
        return clean_text(", ".join(parts))
    if isinstance(value, list) and value:
        return _jsonld_to_text(value[0])
    return ""


PRICE_SCAN_RE = re.compile(r'\$[\d,]+\.?\d*')


def scan_price(html: str) -> str:
    """Last-resort price: the first dollar amount in the page text."""
    if not html:
        return ""
    match = PRICE_SCAN_RE.search(parse_html(html).get_text(" "))
    return match.group(0) if match else ""
