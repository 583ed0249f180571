"""Unit tests for the jobs API client."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from job_crawler.errors import TransientApiError
from job_crawler.integration.jobs_api import JobsApiClient
from job_crawler.models.records import JobRecord, SaveStatus
from tests.fakes import FakeJobsBackend


def _record(name: str = "Backend Engineer") -> JobRecord:
    return JobRecord(
        url="https://jobs.example.com/jobs/1",
        job_name=name,
        company_name="Acme",
        website_name="Example Jobs",
        source="/search",
    )


def _response(status: int, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("POST", "http://jobs.test"), **kwargs)


class TestCheckDuplicate:
    @pytest.mark.asyncio
    async def test_reports_known_job(self):
        backend = FakeJobsBackend(known_jobs={"Backend Engineer"})
        async with backend.client() as api:
            assert await api.check_duplicate("Backend Engineer", "Acme", "https://x/1") is True
            assert await api.check_duplicate("Designer", "Acme", "https://x/2") is False

        assert backend.duplicate_checks[0] == {
            "job_name": "Backend Engineer",
            "company_name": "Acme",
            "job_url": "https://x/1",
        }

    @pytest.mark.asyncio
    async def test_timeout_fails_open(self):
        api = JobsApiClient("http://jobs.test")
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            side_effect=httpx.ReadTimeout("timed out"),
        ):
            assert await api.check_duplicate("A", "B", "https://x") is False
        await api.aclose()

    @pytest.mark.asyncio
    async def test_error_status_fails_open(self):
        api = JobsApiClient("http://jobs.test")
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            return_value=_response(503, json={"error": "down"}),
        ):
            assert await api.check_duplicate("A", "B", "https://x") is False
        await api.aclose()

    @pytest.mark.asyncio
    async def test_malformed_body_fails_open(self):
        api = JobsApiClient("http://jobs.test")
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            return_value=_response(200, text="not json"),
        ):
            assert await api.check_duplicate("A", "B", "https://x") is False
        await api.aclose()


class TestCreateJob:
    @pytest.mark.asyncio
    async def test_created_returns_saved_with_id(self):
        backend = FakeJobsBackend()
        async with backend.client() as api:
            outcome = await api.create_job(_record())

        assert outcome.status is SaveStatus.SAVED
        assert outcome.job_id == "1"
        assert backend.created[0]["website_url"] == "https://jobs.example.com"
        assert backend.created[0]["job_url"] == "/jobs/1"

    @pytest.mark.asyncio
    async def test_conflict_returns_duplicate(self):
        backend = FakeJobsBackend(conflicts={"Backend Engineer"})
        async with backend.client() as api:
            outcome = await api.create_job(_record())

        assert outcome.status is SaveStatus.DUPLICATE
        assert backend.created == []

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        backend = FakeJobsBackend(failures_before_success={"Backend Engineer": 1})
        async with backend.client() as api:
            with pytest.raises(TransientApiError) as exc_info:
                await api.create_job(_record())

        assert exc_info.value.status_code == 500
        assert "Database is locked" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self):
        api = JobsApiClient("http://jobs.test")
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("connection refused"),
        ):
            with pytest.raises(TransientApiError, match="unreachable"):
                await api.create_job(_record())
        await api.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.TooManyRedirects("redirect loop"),
            httpx.DecodingError("bad gzip stream"),
        ],
    )
    async def test_other_http_errors_are_transient(self, error):
        api = JobsApiClient("http://jobs.test")
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, side_effect=error):
            with pytest.raises(TransientApiError, match=type(error).__name__):
                await api.create_job(_record())
        await api.aclose()

    @pytest.mark.asyncio
    async def test_success_without_id_is_transient(self):
        api = JobsApiClient("http://jobs.test")
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            return_value=_response(201, json={"ok": True}),
        ):
            with pytest.raises(TransientApiError):
                await api.create_job(_record())
        await api.aclose()

    @pytest.mark.asyncio
    async def test_posts_to_normalized_base_url(self):
        api = JobsApiClient("http://jobs.test/")
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            return_value=_response(201, json={"id": 7}),
        ) as mock_post:
            outcome = await api.create_job(_record())
        await api.aclose()

        assert outcome.job_id == "7"
        assert mock_post.call_args.args[0] == "http://jobs.test/api/jobs"
        assert mock_post.call_args.kwargs["timeout"] == 15.0


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        http = httpx.AsyncClient()
        async with JobsApiClient("http://jobs.test", client=http):
            pass
        assert not http.is_closed
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self):
        api = JobsApiClient("http://jobs.test")
        await api.aclose()
        assert api._client.is_closed
