"""
Background Job Runner for PropertyScrape

Asynchronous variant of the extraction pipeline for callers that cannot wait
on a request/response cycle. The HTML scrape and the agent call are launched
together; the scrape is resolved first (its HTML is needed for images either
way), then the agent is resolved under a software timeout that is strictly
longer than the agent's own. The job row receives ``processing`` first and
then exactly one terminal write.
"""

import asyncio
from typing import Optional

import config
from core.content_fetcher import ContentFetcher, FetchedContent
from core.exceptions import (
    AgentError,
    AgentTimeout,
    AllExtractionMethodsFailed,
    FetchError,
    TranslationError,
)
from core.job_store import JobStore
from core.translation_service import Translator, build_translator
from controllers.extraction_orchestrator import extract_from_html
from extraction.core.property_record import DebugLog, PropertyRecord
from extraction.dom_extractor import DOMExtractor
from extraction.image_harvester import ImageHarvester, merge_images
from extraction.privacy_scrubber import scrub_record
from models.job import JobStatus
from strategies.agent_client import AgentClient
from strategies.site_registry import SiteRegistry
from utils.http_client import OptimizedHTTPClient
from utils.logging import get_logger
from utils.timeout_utils import soft_timeout_for, with_soft_timeout

logger = get_logger("BackgroundJobRunner")

BOTH_FAILED_MESSAGE = "Both Agent and HTML Scrape failed."


class BackgroundJobRunner:
    """Runs one extraction job per call and persists its outcome."""

    def __init__(self,
                 job_store: JobStore,
                 fetcher: Optional[ContentFetcher] = None,
                 agent_client: Optional[AgentClient] = None,
                 registry: Optional[SiteRegistry] = None,
                 dom_extractor: Optional[DOMExtractor] = None,
                 image_harvester: Optional[ImageHarvester] = None,
                 translator: Optional[Translator] = None,
                 http_client: Optional[OptimizedHTTPClient] = None,
                 scrape_timeout: Optional[float] = None,
                 soft_timeout: Optional[float] = None):
        self.job_store = job_store
        self.http_client = http_client or OptimizedHTTPClient()
        self.fetcher = fetcher or ContentFetcher(http_client=self.http_client)
        self.agent_client = agent_client or AgentClient(http_client=self.http_client)
        self.registry = registry or SiteRegistry()
        self.dom_extractor = dom_extractor or DOMExtractor()
        self.image_harvester = image_harvester or ImageHarvester()
        self.translator = translator if translator is not None else build_translator(self.http_client)
        self.scrape_timeout = scrape_timeout or config.SCRAPE_TIMEOUT_SECONDS
        self.soft_timeout = soft_timeout or soft_timeout_for(
            self.agent_client.timeout, config.AGENT_SOFT_TIMEOUT_GRACE_SECONDS
        )

    async def run(self, job_id: str, url: str) -> Optional[PropertyRecord]:
        """
        Process job ``job_id`` for ``url``.

        Returns:
            The persisted record, or None when the job ended as failed
        """
        debug_log = DebugLog("background")
        await self.job_store.update(job_id, JobStatus.PROCESSING)
        debug_log.log(f"Job {job_id} processing {url}")

        try:
            record = await self._extract(url, debug_log)
        except Exception as e:
            if not isinstance(e, AllExtractionMethodsFailed):
                logger.exception("Unexpected error in background job", job_id=job_id, url=url)
                debug_log.log(f"Unexpected error: {e}")
            message = getattr(e, "message", None) or str(e)
            await self.job_store.update(job_id, JobStatus.FAILED,
                                        data={"debugLog": debug_log.entries}, error=message)
            logger.warning("Background job failed", job_id=job_id, error=message)
            return None

        record = record.copy_with(debug_log=debug_log.entries)
        await self.job_store.update(job_id, JobStatus.COMPLETED, data=record.to_dict())
        logger.info("Background job completed", job_id=job_id, source=record.source)
        return record

    async def _extract(self, url: str, debug_log: DebugLog) -> PropertyRecord:
        profile = self.registry.lookup_or_generic(url)
        debug_log.log(f"Launching parallel requests: Agent ({profile.name} schema) + HTML Scrape")
        scrape_task = asyncio.ensure_future(self.fetcher.fetch(url, timeout=self.scrape_timeout))
        agent_task = asyncio.ensure_future(self.agent_client.extract(url, profile))

        fetched: Optional[FetchedContent] = None
        try:
            fetched = await scrape_task
            debug_log.log(f"HTML Scrape succeeded ({len(fetched.text)} chars)")
        except FetchError as e:
            debug_log.log(f"HTML Scrape failed: {e}")
        except BaseException:
            agent_task.cancel()
            raise

        agent_record: Optional[PropertyRecord] = None
        try:
            agent_record = await with_soft_timeout(
                agent_task, self.soft_timeout, lambda: AgentTimeout(self.soft_timeout)
            )
            debug_log.log(f"Agent succeeded (source={agent_record.source})")
        except AgentError as e:
            debug_log.log(f"Agent failed: {e}")

        if agent_record is not None:
            record = agent_record
        elif fetched is not None:
            record = extract_from_html(self.dom_extractor, fetched, debug_log)
            if not record.has_core_fields:
                debug_log.log("HTML extraction found neither title nor price")
                raise AllExtractionMethodsFailed(BOTH_FAILED_MESSAGE, debug_log.entries)
            debug_log.log(f"Using HTML extraction (source={record.source})")
        else:
            debug_log.log(BOTH_FAILED_MESSAGE)
            raise AllExtractionMethodsFailed(BOTH_FAILED_MESSAGE, debug_log.entries)

        if fetched is not None:
            harvested = self.image_harvester.harvest(fetched.text, fetched.url)
            record = record.copy_with(images=merge_images(record.images, harvested))
            debug_log.log(f"Merged {len(harvested)} harvested images, {len(record.images)} kept")
        else:
            record = record.copy_with(images=merge_images(record.images, []))

        record = scrub_record(record)
        debug_log.log("Removed contact details from title and description")

        if self.translator is not None:
            try:
                record = scrub_record(await self.translator.translate(record))
                debug_log.log("Translation applied")
            except TranslationError as e:
                debug_log.log(f"Translation failed, keeping original text: {e}")

        return record
