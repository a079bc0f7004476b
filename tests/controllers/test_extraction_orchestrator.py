"""
Unit tests for the ExtractionOrchestrator state machine.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from controllers.extraction_orchestrator import (
    FAILURE_MESSAGE,
    ExtractionOrchestrator,
    ExtractionState,
)
from core.exceptions import AgentError, AgentTimeout, AllExtractionMethodsFailed, FetchError, TranslationError
from extraction.core.property_record import PropertyRecord
from extraction.dom_extractor import FALLBACK_SOURCE
from tests.conftest import LISTING_URL, UNKNOWN_URL, make_fetched

AGENT_RECORD = PropertyRecord(
    title="Casa en Costa del Este",
    price="$450,000",
    location="Panama",
    description="Casa con piscina. Llame al 6666-7777.",
    features=["Pool"],
    source="Encuentra24",
)

VILLA_HTML = """
<html><head>
    <meta property="og:description" content="A lovely villa">
</head><body><h1>Beautiful Villa</h1><p>Only $1,200,000 for this gem.</p></body></html>
"""


def build(fetcher, agent_client, translator=None):
    return ExtractionOrchestrator(fetcher=fetcher, agent_client=agent_client, translator=translator)


def log_text(entries):
    return "\n".join(entries)


class TestAgentPath:
    @pytest.mark.asyncio
    async def test_agent_success_scenario(self, mock_fetcher, mock_agent_client):
        mock_agent_client.extract.return_value = AGENT_RECORD
        record = await build(mock_fetcher, mock_agent_client).extract(LISTING_URL)

        assert record.title == "Casa en Costa del Este"
        assert record.price == "$450,000"
        assert record.features == ["Pool"]
        assert record.source == "Encuentra24"

    @pytest.mark.asyncio
    async def test_images_come_from_supplementary_scrape(self, mock_fetcher, mock_agent_client):
        mock_agent_client.extract.return_value = AGENT_RECORD
        record = await build(mock_fetcher, mock_agent_client).extract(LISTING_URL)

        assert record.images[0] == "https://photos.encuentra24.com/t_or_fh_l/f/12/34/hero.jpg"
        assert mock_fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_image_scrape_failure_is_not_fatal(self, mock_fetcher, mock_agent_client):
        mock_agent_client.extract.return_value = AGENT_RECORD
        mock_fetcher.fetch.side_effect = FetchError(LISTING_URL, "Forbidden", status=403)

        record = await build(mock_fetcher, mock_agent_client).extract(LISTING_URL)

        assert record.title == "Casa en Costa del Este"
        assert record.images == []
        assert "Image scrape failed" in log_text(record.debug_log)

    @pytest.mark.asyncio
    async def test_output_is_scrubbed(self, mock_fetcher, mock_agent_client):
        mock_agent_client.extract.return_value = AGENT_RECORD
        record = await build(mock_fetcher, mock_agent_client).extract(LISTING_URL)

        assert "6666-7777" not in record.description
        assert record.description.startswith("Casa con piscina.")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [AgentError("service down"), AgentTimeout(120)])
    async def test_agent_failure_falls_back(self, mock_fetcher, mock_agent_client, error):
        mock_agent_client.extract.side_effect = error
        record = await build(mock_fetcher, mock_agent_client).extract(LISTING_URL)

        assert record.title == "Casa en Costa del Este"
        assert record.source == "Encuentra24"
        assert "Agent failed" in log_text(record.debug_log)
        assert ExtractionState.FALLBACK_PATH.value in log_text(record.debug_log)


class TestFallbackPath:
    @pytest.mark.asyncio
    async def test_unknown_site_scenario(self, mock_agent_client):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value=make_fetched(VILLA_HTML, UNKNOWN_URL))

        record = await build(fetcher, mock_agent_client).extract(UNKNOWN_URL)

        assert record.title == "Beautiful Villa"
        assert record.description == "A lovely villa"
        assert record.source == FALLBACK_SOURCE
        mock_agent_client.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_price_text_scan(self, mock_agent_client):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value=make_fetched(VILLA_HTML, UNKNOWN_URL))

        record = await build(fetcher, mock_agent_client).extract(UNKNOWN_URL)
        assert record.price == "$1,200,000"

    @pytest.mark.asyncio
    async def test_total_failure_scenario(self, mock_agent_client):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=FetchError(UNKNOWN_URL, "network error"))

        with pytest.raises(AllExtractionMethodsFailed) as exc_info:
            await build(fetcher, mock_agent_client).extract(UNKNOWN_URL)

        error = exc_info.value
        assert error.message == FAILURE_MESSAGE
        assert error.debug_log
        assert ExtractionState.ERROR.value in log_text(error.debug_log)
        assert error.to_dict()["error"] == "Failed to scrape property data"
        mock_agent_client.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_page_without_listing_data_fails(self, mock_agent_client):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value=make_fetched("<html><body></body></html>", UNKNOWN_URL))

        with pytest.raises(AllExtractionMethodsFailed):
            await build(fetcher, mock_agent_client).extract(UNKNOWN_URL)

    @pytest.mark.asyncio
    async def test_unexpected_error_is_typed(self, mock_agent_client):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=RuntimeError("bug"))

        with pytest.raises(AllExtractionMethodsFailed) as exc_info:
            await build(fetcher, mock_agent_client).extract(UNKNOWN_URL)
        assert exc_info.value.details == "bug"


class TestDebugLog:
    @pytest.mark.asyncio
    async def test_every_transition_is_logged(self, mock_fetcher, mock_agent_client):
        mock_agent_client.extract.return_value = AGENT_RECORD
        record = await build(mock_fetcher, mock_agent_client).extract(LISTING_URL)
        text = log_text(record.debug_log)

        for state in (ExtractionState.INIT, ExtractionState.STRATEGY_SELECT, ExtractionState.AGENT_PATH,
                      ExtractionState.IMAGE_ENHANCE, ExtractionState.SCRUB, ExtractionState.DONE):
            assert state.value in text
        assert "Extraction completed via Encuentra24" in text
        assert all(entry.startswith("[") for entry in record.debug_log)

    @pytest.mark.asyncio
    async def test_logs_are_per_request(self, mock_fetcher, mock_agent_client):
        mock_agent_client.extract.return_value = AGENT_RECORD
        orchestrator = build(mock_fetcher, mock_agent_client)

        first = await orchestrator.extract(LISTING_URL)
        second = await orchestrator.extract(LISTING_URL)
        assert len(first.debug_log) == len(second.debug_log)


class TestTranslation:
    @pytest.mark.asyncio
    async def test_translation_applied_after_scrub(self, mock_fetcher, mock_agent_client):
        mock_agent_client.extract.return_value = AGENT_RECORD
        translator = MagicMock()
        translator.translate = AsyncMock(side_effect=lambda record: record.copy_with(title="House in Costa del Este"))

        record = await build(mock_fetcher, mock_agent_client, translator).extract(LISTING_URL)

        assert record.title == "House in Costa del Este"
        translated_input = translator.translate.await_args.args[0]
        assert "6666-7777" not in translated_input.description

    @pytest.mark.asyncio
    async def test_translation_failure_keeps_record(self, mock_fetcher, mock_agent_client):
        mock_agent_client.extract.return_value = AGENT_RECORD
        translator = MagicMock()
        translator.translate = AsyncMock(side_effect=TranslationError("quota exceeded"))

        record = await build(mock_fetcher, mock_agent_client, translator).extract(LISTING_URL)

        assert record.title == "Casa en Costa del Este"
        assert "Translation failed" in log_text(record.debug_log)
