"""Property tests for the persistence pipeline.

Property 7: Saves in flight never exceed the concurrency bound.
Property 8: Every submitted record settles with exactly one outcome, and
            the counters add up to the number of records processed.
"""

from __future__ import annotations

import asyncio

from hypothesis import given, settings
from hypothesis import strategies as st

from job_crawler.models.records import JobRecord, SaveStatus
from job_crawler.services.persistence import PersistencePipeline
from tests.fakes import FakeJobsBackend


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

bounds = st.integers(min_value=1, max_value=6)

# Per-record behaviour: "ok", "conflict", or a number of 500s before success
behaviours = st.one_of(
    st.just("ok"),
    st.just("conflict"),
    st.integers(min_value=1, max_value=4),
)


def _record(i: int) -> JobRecord:
    return JobRecord(
        url=f"https://jobs.example.com/jobs/{i}",
        job_name=f"job-{i}",
        company_name="Acme",
        website_name="Example Jobs",
        source="/search",
    )


async def _save_all(backend: FakeJobsBackend, count: int, bound: int, attempts: int = 3):
    async with backend.client() as api:
        pipeline = PersistencePipeline(
            api,
            max_concurrent_saves=bound,
            max_attempts=attempts,
            backoff_base_seconds=0.0,
        )
        for i in range(count):
            await pipeline.submit(_record(i))
            assert pipeline.in_flight <= bound
        stats = await pipeline.drain()
    return pipeline, stats


# ---------------------------------------------------------------------------
# Property 7: Concurrency bound
# ---------------------------------------------------------------------------


@settings(max_examples=20, deadline=None)
@given(bound=bounds, count=st.integers(min_value=0, max_value=30))
def test_in_flight_never_exceeds_bound(bound: int, count: int) -> None:
    backend = FakeJobsBackend(latency=0.001)

    _, stats = asyncio.run(_save_all(backend, count, bound))

    assert stats.peak_in_flight <= bound
    assert backend.peak_in_flight <= bound
    assert stats.saved == count


# ---------------------------------------------------------------------------
# Property 8: One outcome per record
# ---------------------------------------------------------------------------


@settings(max_examples=30, deadline=None)
@given(plan=st.lists(behaviours, min_size=1, max_size=15), bound=bounds)
def test_each_record_settles_once(plan: list, bound: int) -> None:
    conflicts = {f"job-{i}" for i, b in enumerate(plan) if b == "conflict"}
    failures = {f"job-{i}": b for i, b in enumerate(plan) if isinstance(b, int)}
    backend = FakeJobsBackend(conflicts=conflicts, failures_before_success=failures)

    pipeline, stats = asyncio.run(_save_all(backend, len(plan), bound))

    assert len(pipeline.outcomes) == len(plan)
    assert stats.saved + stats.duplicate + stats.failed == stats.processed == len(plan)
    assert stats.duplicate == len(conflicts)
    # three attempts tolerate at most two failures
    assert stats.failed == sum(1 for n in failures.values() if n >= 3)
    for name, n in failures.items():
        assert backend.attempts[name] == min(n + 1, 3)
    assert all(
        outcome.status in (SaveStatus.SAVED, SaveStatus.DUPLICATE, SaveStatus.FAILED)
        for outcome in pipeline.outcomes
    )
