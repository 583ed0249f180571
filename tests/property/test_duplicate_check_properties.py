"""Property tests for the duplicate check.

Property 9: Any transport failure or error status fails open, and a
            listing is never dropped because the duplicate check failed.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
from hypothesis import given, settings
from hypothesis import strategies as st

from job_crawler.extractors.listing import ListingCrawler
from job_crawler.integration.jobs_api import JobsApiClient
from tests.fakes import FakePage, fast_settings, listing_item, make_schema

_URL = "https://jobs.example.com/search"


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

transport_errors = st.sampled_from(
    [
        httpx.ReadTimeout("read timed out"),
        httpx.ConnectTimeout("connect timed out"),
        httpx.ConnectError("connection refused"),
        httpx.RemoteProtocolError("server disconnected"),
    ]
)

error_statuses = st.integers(min_value=400, max_value=599)

names = st.from_regex(r"[A-Z][a-z]{2,10}( [A-Z][a-z]{2,10})?", fullmatch=True)


def _status_response(status: int) -> httpx.Response:
    return httpx.Response(
        status,
        json={"error": "unavailable"},
        request=httpx.Request("POST", "http://jobs.test/api/jobs/check-duplicate"),
    )


# ---------------------------------------------------------------------------
# Property 9: Fail open
# ---------------------------------------------------------------------------


@settings(max_examples=50, deadline=None)
@given(error=transport_errors, job_name=names, company=names)
def test_transport_errors_fail_open(error: Exception, job_name: str, company: str) -> None:
    async def _run() -> bool:
        api = JobsApiClient("http://jobs.test")
        try:
            with patch("httpx.AsyncClient.post", new_callable=AsyncMock, side_effect=error):
                return await api.check_duplicate(job_name, company, "https://x/1")
        finally:
            await api.aclose()

    assert asyncio.run(_run()) is False


@settings(max_examples=50, deadline=None)
@given(status=error_statuses)
def test_error_statuses_fail_open(status: int) -> None:
    async def _run() -> bool:
        api = JobsApiClient("http://jobs.test")
        try:
            with patch(
                "httpx.AsyncClient.post",
                new_callable=AsyncMock,
                return_value=_status_response(status),
            ):
                return await api.check_duplicate("Engineer", "Acme", "https://x/1")
        finally:
            await api.aclose()

    assert asyncio.run(_run()) is False


@settings(max_examples=30, deadline=None)
@given(error=transport_errors, titles=st.lists(names, min_size=1, max_size=6))
def test_failed_checks_keep_every_listing(error: Exception, titles: list[str]) -> None:
    async def _run():
        api = JobsApiClient("http://jobs.test")
        crawler = ListingCrawler(fast_settings(), api)
        page = FakePage(
            {
                _URL: lambda: {
                    "ul.jobs > li": [
                        listing_item(f"/jobs/{i}", title=title, company="Acme")
                        for i, title in enumerate(titles)
                    ]
                }
            }
        )
        await page.goto(_URL)
        try:
            with patch("httpx.AsyncClient.post", new_callable=AsyncMock, side_effect=error):
                return await crawler.extract_listings(page, make_schema(), "/search")
        finally:
            await api.aclose()

    references = asyncio.run(_run())

    assert [ref.job_name for ref in references] == titles
