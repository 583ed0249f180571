"""Crawl runner: orchestrates a full multi-site run.

Phase 1 collects listing references site by site, in a fresh browser
context per site. Phase 2 opens one page, walks every reference in
batches, extracts the detail record and hands it to the persistence
pipeline, whose saves overlap with the next extractions. The run ends by
draining the pipeline and reporting the aggregate counters.

No single site can stop the run: exceptions are caught at site scope and
logged. A failure of the phase-2 context ends extraction early, but the
pipeline is still drained and its counters returned.
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Protocol

from job_crawler.browser.fingerprint import FingerprintRandomizer
from job_crawler.config.settings import CrawlerSettings
from job_crawler.config.site_schema import SiteSchema
from job_crawler.extractors.detail import DetailExtractor
from job_crawler.extractors.listing import ListingCrawler
from job_crawler.integration.jobs_api import JobsApiClient
from job_crawler.models.records import ListingReference, PipelineStats
from job_crawler.services.persistence import PersistencePipeline

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page

logger = logging.getLogger(__name__)


class ContextProvider(Protocol):
    def site_context(
        self, region: str | None = None
    ) -> AbstractAsyncContextManager["BrowserContext"]: ...


class CrawlRunner:
    """Runs listing collection, detail extraction and persistence.

    Dependencies are injected via the constructor so the runner is
    testable without real browsers or network calls.
    """

    def __init__(
        self,
        *,
        settings: CrawlerSettings,
        browser: ContextProvider,
        api: JobsApiClient,
        fingerprint: FingerprintRandomizer | None = None,
    ) -> None:
        self._settings = settings
        self._browser = browser
        self._api = api
        self._fingerprint = fingerprint or FingerprintRandomizer()
        self._listing_crawler = ListingCrawler(settings, api, self._fingerprint)
        self._detail_extractor = DetailExtractor(settings, self._fingerprint)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, schemas: dict[str, SiteSchema]) -> PipelineStats:
        """Crawl every site in *schemas* and persist what was found."""
        listings = await self.collect_listings(schemas)
        total = sum(len(refs) for refs in listings.values())
        logger.info("URL collection completed: %d URL(s) collected", total)

        if total == 0:
            logger.warning("No URLs collected to process")
            return PipelineStats()

        stats = await self.process_listings(schemas, listings)
        log_summary(stats)
        return stats

    async def collect_listings(
        self, schemas: dict[str, SiteSchema]
    ) -> dict[str, list[ListingReference]]:
        """Phase 1: listing references per site key, in configuration order."""
        results: dict[str, list[ListingReference]] = {}

        for key, schema in schemas.items():
            try:
                async with self._browser.site_context(schema.region) as context:
                    results[key] = await self._listing_crawler.crawl(context, schema)
            except Exception:
                logger.error(
                    "Error crawling %s", schema.name, exc_info=True, extra={"website": schema.name}
                )
            await self._fingerprint.pause(self._settings.site_pause_ms)

        return results

    async def process_listings(
        self,
        schemas: dict[str, SiteSchema],
        listings: dict[str, list[ListingReference]],
    ) -> PipelineStats:
        """Phase 2: extract each reference and feed the persistence pipeline."""
        pipeline = PersistencePipeline(
            self._api,
            max_concurrent_saves=self._settings.max_concurrent_saves,
            max_attempts=self._settings.save_max_attempts,
            backoff_base_seconds=self._settings.save_backoff_base_seconds,
        )
        total = sum(len(refs) for refs in listings.values())
        logger.info("Starting job processing for %d URL(s)", total)

        try:
            async with self._browser.site_context() as context:
                page = await context.new_page()
                for key, references in listings.items():
                    schema = schemas.get(key)
                    if schema is None or schema.job_data is None:
                        logger.warning("No job data rules defined for %s, skipping", key)
                        continue
                    await self._process_site(page, schema, references, pipeline, total)
        except Exception:
            logger.error("Job processing stopped early", exc_info=True)
        finally:
            stats = await pipeline.drain()

        return stats

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _process_site(
        self,
        page: "Page",
        schema: SiteSchema,
        references: list[ListingReference],
        pipeline: PersistencePipeline,
        total: int,
    ) -> None:
        batch_size = self._settings.batch_size
        batch_count = (len(references) + batch_size - 1) // batch_size
        logger.info(
            "Processing %d URL(s) from %s",
            len(references),
            schema.name,
            extra={"website": schema.name},
        )

        for batch_index, batch in enumerate(_batches(references, batch_size), start=1):
            for reference in batch:
                logger.info(
                    "Processing %d/%d: %s",
                    pipeline.stats.processed + 1,
                    total,
                    reference.url,
                    extra={"website": schema.name, "job_url": reference.url},
                )
                try:
                    record = await self._detail_extractor.extract_record(page, reference, schema)
                except Exception as exc:
                    logger.error("Error extracting %s: %s", reference.url, exc, exc_info=True)
                    record = None

                if record is None:
                    pipeline.skip(reference, "missing job data")
                else:
                    await pipeline.submit(record)

            logger.info(
                "Completed extraction batch %d of %d for %s",
                batch_index,
                batch_count,
                schema.name,
                extra={"website": schema.name},
            )
            await self._fingerprint.pause(self._settings.batch_pause_ms)


def _batches(
    references: list[ListingReference], size: int
) -> list[list[ListingReference]]:
    return [references[i : i + size] for i in range(0, len(references), size)]


def log_summary(stats: PipelineStats) -> None:
    """Log the final aggregate counters."""
    logger.info(
        "Final summary: processed=%d saved=%d duplicate=%d failed=%d skipped=%d "
        "success_rate=%.1f%%",
        stats.processed,
        stats.saved,
        stats.duplicate,
        stats.failed,
        stats.skipped,
        stats.success_rate,
    )
