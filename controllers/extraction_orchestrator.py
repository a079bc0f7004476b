"""
Extraction Orchestrator for PropertyScrape

Synchronous (request/response) extraction of a single listing URL, run as an
explicit state machine:

    INIT -> STRATEGY_SELECT -> AGENT_PATH | FALLBACK_PATH -> IMAGE_ENHANCE
         -> SCRUB -> TRANSLATE -> DONE

with ERROR reachable from every state. Known listing sites go through the
structured extraction agent first; the direct-fetch HTML fallback only runs
after the agent has failed or when the host has no schema. Every transition
is written to the request's DebugLog, which is returned on success and
attached to AllExtractionMethodsFailed on failure.
"""

from enum import Enum
from typing import List, Optional

from core.content_fetcher import ContentFetcher, FetchedContent
from core.exceptions import (
    AgentError,
    AllExtractionMethodsFailed,
    FetchError,
    TranslationError,
    UnsupportedDomain,
)
from core.translation_service import Translator, build_translator
from extraction.core.property_record import DebugLog, PropertyRecord
from extraction.dom_extractor import DOMExtractor, scan_price
from extraction.image_harvester import ImageHarvester, merge_images
from extraction.privacy_scrubber import scrub_record
from strategies.agent_client import AgentClient
from strategies.site_registry import SiteProfile, SiteRegistry
from utils.http_client import OptimizedHTTPClient
from utils.logging import get_logger

logger = get_logger("ExtractionOrchestrator")

FAILURE_MESSAGE = "Failed to scrape property data"


class ExtractionState(str, Enum):
    INIT = "INIT"
    STRATEGY_SELECT = "STRATEGY_SELECT"
    AGENT_PATH = "AGENT_PATH"
    FALLBACK_PATH = "FALLBACK_PATH"
    IMAGE_ENHANCE = "IMAGE_ENHANCE"
    SCRUB = "SCRUB"
    TRANSLATE = "TRANSLATE"
    DONE = "DONE"
    ERROR = "ERROR"


class ExtractionRun:
    """Mutable state of one extraction request. Never shared between requests."""

    def __init__(self, url: str):
        self.url = url
        self.state = ExtractionState.INIT
        self.debug_log = DebugLog("orchestrator")
        self.profile: Optional[SiteProfile] = None
        self.record: Optional[PropertyRecord] = None
        self.harvested_images: List[str] = []
        self.history: List[ExtractionState] = [ExtractionState.INIT]

    def transition(self, state: ExtractionState, message: str) -> None:
        self.state = state
        self.history.append(state)
        self.debug_log.log(f"{state.value}: {message}")


class ExtractionOrchestrator:
    """
    Coordinates agent extraction, HTML fallback, image harvesting, privacy
    scrubbing and optional translation for one URL at a time.
    """

    def __init__(self,
                 fetcher: Optional[ContentFetcher] = None,
                 agent_client: Optional[AgentClient] = None,
                 registry: Optional[SiteRegistry] = None,
                 dom_extractor: Optional[DOMExtractor] = None,
                 image_harvester: Optional[ImageHarvester] = None,
                 translator: Optional[Translator] = None,
                 http_client: Optional[OptimizedHTTPClient] = None):
        self.http_client = http_client or OptimizedHTTPClient()
        self.fetcher = fetcher or ContentFetcher(http_client=self.http_client)
        self.agent_client = agent_client or AgentClient(http_client=self.http_client)
        self.registry = registry or SiteRegistry()
        self.dom_extractor = dom_extractor or DOMExtractor()
        self.image_harvester = image_harvester or ImageHarvester()
        self.translator = translator if translator is not None else build_translator(self.http_client)

    async def extract(self, url: str) -> PropertyRecord:
        """
        Extract a scrubbed PropertyRecord for ``url``.

        Raises:
            AllExtractionMethodsFailed: no strategy produced a record; carries the debug log
        """
        run = ExtractionRun(url)
        run.debug_log.log(f"{ExtractionState.INIT.value}: Starting extraction for {url}")
        logger.info("Starting extraction", url=url)

        try:
            self._select_strategy(run)
            if run.profile is not None:
                await self._agent_path(run)
            if run.record is None:
                await self._fallback_path(run)
            self._enhance_images(run)
            self._scrub(run)
            await self._translate(run)
        except AllExtractionMethodsFailed:
            logger.warning("Extraction failed", url=url, steps=len(run.debug_log))
            raise
        except Exception as e:
            run.transition(ExtractionState.ERROR, f"Unexpected error: {e}")
            logger.exception("Unexpected extraction error", url=url)
            raise AllExtractionMethodsFailed(FAILURE_MESSAGE, run.debug_log.entries, str(e)) from e

        run.transition(ExtractionState.DONE, f"Extraction completed via {run.record.source}")
        logger.info("Extraction completed", url=url, source=run.record.source)
        return run.record.copy_with(debug_log=run.debug_log.entries)

    def _select_strategy(self, run: ExtractionRun) -> None:
        try:
            run.profile = self.registry.lookup(run.url)
        except UnsupportedDomain as e:
            run.transition(ExtractionState.STRATEGY_SELECT, f"{e}; using HTML fallback")
            return
        run.transition(ExtractionState.STRATEGY_SELECT,
                       f"Matched {run.profile.name} schema; trying Agent first")

    async def _agent_path(self, run: ExtractionRun) -> None:
        run.transition(ExtractionState.AGENT_PATH, f"Calling Agent with {run.profile.name} schema")
        try:
            run.record = await self.agent_client.extract(run.url, run.profile)
        except AgentError as e:
            run.debug_log.log(f"{ExtractionState.AGENT_PATH.value}: Agent failed: {e}")
            return
        run.debug_log.log(f"{ExtractionState.AGENT_PATH.value}: Agent succeeded "
                          f"(title='{run.record.title}', source={run.record.source})")

        # Agent results carry no reliable images; a failure here is not fatal
        try:
            fetched = await self.fetcher.fetch(run.url)
        except FetchError as e:
            run.debug_log.log(f"{ExtractionState.AGENT_PATH.value}: Image scrape failed, "
                              f"keeping agent record without images: {e}")
            return
        run.harvested_images = self.image_harvester.harvest(fetched.text, fetched.url)
        run.debug_log.log(f"{ExtractionState.AGENT_PATH.value}: Harvested "
                          f"{len(run.harvested_images)} images from page HTML")

    async def _fallback_path(self, run: ExtractionRun) -> None:
        run.transition(ExtractionState.FALLBACK_PATH, "Fetching page directly for HTML extraction")
        try:
            fetched = await self.fetcher.fetch(run.url)
        except FetchError as e:
            self._fail(run, f"Fetch failed: {e}", str(e))

        record = extract_from_html(self.dom_extractor, fetched, run.debug_log)
        if not record.has_core_fields:
            self._fail(run, "HTML extraction found neither title nor price",
                       "No property data found in page")

        run.record = record
        run.harvested_images = self.image_harvester.harvest(fetched.text, fetched.url)
        run.debug_log.log(f"{ExtractionState.FALLBACK_PATH.value}: HTML extraction succeeded "
                          f"(title='{record.title}', source={record.source}, "
                          f"{len(run.harvested_images)} images)")

    def _enhance_images(self, run: ExtractionRun) -> None:
        before = len(run.record.images)
        images = merge_images(run.record.images, run.harvested_images)
        run.record = run.record.copy_with(images=images)
        run.transition(ExtractionState.IMAGE_ENHANCE,
                       f"Merged images: {before} from strategy, {len(run.harvested_images)} harvested, "
                       f"{len(images)} kept")

    def _scrub(self, run: ExtractionRun) -> None:
        run.record = scrub_record(run.record)
        run.transition(ExtractionState.SCRUB, "Removed contact details from title and description")

    async def _translate(self, run: ExtractionRun) -> None:
        if self.translator is None:
            return
        run.transition(ExtractionState.TRANSLATE, "Translating record")
        try:
            translated = await self.translator.translate(run.record)
        except TranslationError as e:
            run.debug_log.log(f"{ExtractionState.TRANSLATE.value}: Translation failed, "
                              f"keeping original text: {e}")
            return
        # Translation must not reintroduce scrubbed content
        run.record = scrub_record(translated)
        run.debug_log.log(f"{ExtractionState.TRANSLATE.value}: Translation applied")

    def _fail(self, run: ExtractionRun, message: str, details: str) -> None:
        run.transition(ExtractionState.ERROR, message)
        raise AllExtractionMethodsFailed(FAILURE_MESSAGE, run.debug_log.entries, details)


def extract_from_html(dom_extractor: DOMExtractor, fetched: FetchedContent,
                      debug_log: DebugLog) -> PropertyRecord:
    """Run the DOM extractor, filling a missing price from a dollar-amount text scan."""
    record = dom_extractor.extract(fetched.text, fetched.url)
    if not record.price:
        price = scan_price(fetched.text)
        if price:
            debug_log.log(f"Price not found by selectors; text scan found {price}")
            record = record.copy_with(price=price)
    return record
