"""
Translation backend for listing records.

Translation is an optional enhancement: ``translate`` either returns a fully
translated copy of the record or raises TranslationError, so callers can keep
the untranslated record on any failure.
"""

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional

import aiohttp

import config
from core.exceptions import TranslationError
from extraction.core.property_record import PropertyRecord
from utils.http_client import OptimizedHTTPClient

logger = logging.getLogger(__name__)

# MyMemory rejects queries over 500 bytes
MAX_QUERY_LENGTH = 450
_SENTENCE_END_RE = re.compile(r'(?<=[.!?])\s+')


class Translator(ABC):
    """Translates the human-readable fields of a PropertyRecord."""

    @abstractmethod
    async def translate(self, record: PropertyRecord) -> PropertyRecord:
        """Return a translated copy of ``record`` or raise TranslationError."""


class MyMemoryTranslator(Translator):
    """Translator backed by the MyMemory REST API."""

    def __init__(self, http_client: Optional[OptimizedHTTPClient] = None,
                 api_url: Optional[str] = None,
                 source_lang: Optional[str] = None,
                 target_lang: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.http_client = http_client or OptimizedHTTPClient()
        self.api_url = api_url or config.TRANSLATION_API_URL
        self.source_lang = source_lang or config.TRANSLATION_SOURCE_LANG
        self.target_lang = target_lang or config.TRANSLATION_TARGET_LANG
        self.timeout = timeout or config.TRANSLATION_TIMEOUT_SECONDS

    async def translate(self, record: PropertyRecord) -> PropertyRecord:
        """
        Translate title, description, location and features in one pass.

        Raises:
            TranslationError: if any single field fails to translate
        """
        title, description, location, *features = await asyncio.gather(
            self.translate_text(record.title),
            self.translate_text(record.description),
            self.translate_text(record.location),
            *[self.translate_text(feature) for feature in record.features],
        )
        return record.copy_with(
            title=title,
            description=description,
            location=location,
            features=features,
        )

    async def translate_text(self, text: str) -> str:
        if not text or not text.strip():
            return text
        translated = []
        for chunk in split_for_query(text):
            translated.append(await self._translate_chunk(chunk))
        return " ".join(translated)

    async def _translate_chunk(self, text: str) -> str:
        params = {"q": text, "langpair": f"{self.source_lang}|{self.target_lang}"}
        try:
            response = await self.http_client.get(self.api_url, params=params, timeout=self.timeout)
            async with response:
                if response.status != 200:
                    raise TranslationError(f"Translation service returned HTTP {response.status}")
                body = await response.text()
        except asyncio.TimeoutError:
            raise TranslationError("Translation request timed out")
        except aiohttp.ClientError as e:
            raise TranslationError(f"Translation request failed: {e}")

        try:
            data = json.loads(body)
        except ValueError:
            raise TranslationError("Translation service returned a non-JSON response")

        translated = (data.get("responseData") or {}).get("translatedText") if isinstance(data, dict) else None
        if data.get("responseStatus") != 200 or not translated:
            raise TranslationError(f"Translation rejected: {data.get('responseDetails', 'no details')}")
        return translated


def split_for_query(text: str, limit: int = MAX_QUERY_LENGTH) -> List[str]:
    """Split ``text`` on sentence boundaries into chunks of at most ``limit`` characters."""
    if len(text) <= limit:
        return [text]
    chunks: List[str] = []
    current = ""
    for sentence in _SENTENCE_END_RE.split(text):
        while len(sentence) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(sentence[:limit])
            sentence = sentence[limit:]
        candidate = f"{current} {sentence}".strip()
        if len(candidate) > limit:
            chunks.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def build_translator(http_client: Optional[OptimizedHTTPClient] = None) -> Optional[Translator]:
    """The configured translator, or None when translation is disabled."""
    if not config.TRANSLATION_ENABLED:
        return None
    return MyMemoryTranslator(http_client=http_client)
