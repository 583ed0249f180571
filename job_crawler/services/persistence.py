"""Bounded-concurrency persistence pipeline.

Consumes JobRecords and classifies each save as Saved, Duplicate or Failed.
Admission to start a save is gated by an ``asyncio.Semaphore``: ``submit()``
blocks while ``max_concurrent_saves`` saves are in flight, so extraction
(which happens between submits) overlaps with outstanding saves without
ever exceeding the bound. Each admitted save runs its own retries to
completion and releases its permit when it settles.

A pipeline instance lives for one run: create it, ``submit()``/``skip()``
every reference, then ``drain()`` to wait for all saves and read the final
counters.
"""

from __future__ import annotations

import asyncio
import logging

from job_crawler.errors import RetryExhaustedError, TransientApiError
from job_crawler.integration.jobs_api import JobsApiClient
from job_crawler.models.records import (
    JobRecord,
    ListingReference,
    PipelineStats,
    SaveOutcome,
    SaveStatus,
)
from job_crawler.resilience.retry import linear_backoff, with_retry

logger = logging.getLogger(__name__)


class PersistencePipeline:
    """Semaphore-gated save pool with retry and aggregate counters.

    Parameters
    ----------
    api:
        Client used for job-creation requests.
    max_concurrent_saves:
        Maximum number of saves outstanding at any instant (default 5).
    max_attempts:
        Attempts per record before it is counted as failed (default 3).
    backoff_base_seconds:
        Linear backoff base: attempt *n* waits ``n * base`` seconds.
    """

    def __init__(
        self,
        api: JobsApiClient,
        *,
        max_concurrent_saves: int = 5,
        max_attempts: int = 3,
        backoff_base_seconds: float = 1.0,
    ) -> None:
        if max_concurrent_saves < 1:
            raise ValueError("max_concurrent_saves must be at least 1")
        self._api = api
        self._max_concurrent = max_concurrent_saves
        self._max_attempts = max_attempts
        self._backoff = linear_backoff(backoff_base_seconds)

        self._semaphore = asyncio.Semaphore(max_concurrent_saves)
        self._tasks: set[asyncio.Task[SaveOutcome]] = set()
        self._outcomes: list[SaveOutcome] = []
        self._in_flight = 0
        self._submitted = 0
        self._stats = PipelineStats()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def stats(self) -> PipelineStats:
        """Counters so far (final only after ``drain()``)."""
        return self._stats

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def outcomes(self) -> list[SaveOutcome]:
        """One outcome per settled save, in completion order."""
        return list(self._outcomes)

    async def submit(self, record: JobRecord) -> None:
        """Start saving *record* once a permit is free.

        Returns as soon as the save has been admitted; the save itself
        continues in the background.
        """
        await self._semaphore.acquire()
        self._in_flight += 1
        self._stats.peak_in_flight = max(self._stats.peak_in_flight, self._in_flight)
        self._stats.processed += 1
        self._submitted += 1

        task = asyncio.create_task(self._run(record))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def skip(self, reference: ListingReference, reason: str) -> None:
        """Count a reference that produced no usable record."""
        self._stats.processed += 1
        self._stats.skipped += 1
        logger.info(
            "Skipping %s: %s",
            reference.url,
            reason,
            extra={"website": reference.website, "job_url": reference.url},
        )

    async def drain(self) -> PipelineStats:
        """Wait for every outstanding save to settle and return the counters."""
        if self._tasks:
            logger.info("Waiting for %d outstanding save(s) to settle", len(self._tasks))
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self._stats

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run(self, record: JobRecord) -> SaveOutcome:
        try:
            outcome = await self._save(record)
        except Exception as exc:
            logger.error(
                "Unexpected error saving %r: %s",
                record.job_name,
                exc,
                exc_info=True,
                extra={"job_url": record.url},
            )
            outcome = SaveOutcome.failed(f"{exc.__class__.__name__}: {exc}")
        finally:
            self._in_flight -= 1
            self._semaphore.release()

        self._outcomes.append(outcome)
        self._stats.record(outcome)
        self._log_outcome(record, outcome)
        return outcome

    async def _save(self, record: JobRecord) -> SaveOutcome:
        """Create the job, retrying transient failures with linear backoff."""
        try:
            return await with_retry(
                lambda: self._api.create_job(record),
                max_attempts=self._max_attempts,
                backoff=self._backoff,
                retry_on=(TransientApiError,),
                label=f"Save of {record.job_name!r}",
            )
        except RetryExhaustedError as exc:
            return SaveOutcome.failed(str(exc.last_error))

    def _log_outcome(self, record: JobRecord, outcome: SaveOutcome) -> None:
        extra = {
            "website": record.website_name,
            "job_url": record.url,
            "outcome": outcome.status.value,
        }
        if outcome.status is SaveStatus.SAVED:
            logger.info(
                "Saved %d/%d: %s (id=%s)",
                self._stats.saved,
                self._submitted,
                record.job_name,
                outcome.job_id,
                extra=extra,
            )
        elif outcome.status is SaveStatus.DUPLICATE:
            logger.info(
                "Duplicate %d: %s", self._stats.duplicate, record.job_name, extra=extra
            )
        else:
            logger.warning(
                "Failed %d: %s (%s)",
                self._stats.failed,
                record.job_name,
                outcome.reason,
                extra=extra,
            )
