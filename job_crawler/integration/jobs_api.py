"""HTTP client for the jobs API.

Two endpoints are used:

* ``POST /api/jobs/check-duplicate``: answers whether a posting is already
  stored. Any failure fails open (treated as "not a duplicate") so that the
  crawl is never blocked by the API's availability.
* ``POST /api/jobs``: creates a job. ``201`` carries the new id, ``409``
  means the job already exists, anything else is a transient error that the
  caller may retry.
"""

from __future__ import annotations

import logging

import httpx

from job_crawler.errors import TransientApiError
from job_crawler.models.records import JobRecord, SaveOutcome

logger = logging.getLogger(__name__)


class JobsApiClient:
    """Async client for the jobs API.

    Parameters
    ----------
    base_url:
        Root URL of the API (e.g. "http://localhost:3000").
    duplicate_check_timeout:
        Timeout in seconds for a duplicate check.
    save_timeout:
        Timeout in seconds for one job-creation request.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests inject one wired to
        an in-process app). When omitted, the client owns its own.
    """

    def __init__(
        self,
        base_url: str,
        *,
        duplicate_check_timeout: float = 10.0,
        save_timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._duplicate_check_timeout = duplicate_check_timeout
        self._save_timeout = save_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def __aenter__(self) -> "JobsApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Duplicate check
    # ------------------------------------------------------------------

    async def check_duplicate(
        self, job_name: str, company_name: str, job_url: str
    ) -> bool:
        """Return ``True`` if the API already knows this posting.

        Never raises: network errors, timeouts, error statuses and malformed
        bodies are logged and reported as ``False``.
        """
        try:
            response = await self._client.post(
                f"{self._base_url}/api/jobs/check-duplicate",
                json={
                    "job_name": job_name,
                    "company_name": company_name,
                    "job_url": job_url,
                },
                timeout=self._duplicate_check_timeout,
            )
            response.raise_for_status()
            return bool(response.json().get("isDuplicate", False))
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning(
                "Duplicate check failed for %r at %r, assuming not a duplicate: %s",
                job_name,
                company_name,
                exc,
                extra={"job_url": job_url},
            )
            return False

    # ------------------------------------------------------------------
    # Job creation
    # ------------------------------------------------------------------

    async def create_job(self, record: JobRecord) -> SaveOutcome:
        """Issue one create request for *record*.

        Returns
        -------
        SaveOutcome
            ``Saved`` on 2xx with an id, ``Duplicate`` on 409.

        Raises
        ------
        TransientApiError
            On network errors, timeouts and any other status.
        """
        try:
            response = await self._client.post(
                f"{self._base_url}/api/jobs",
                json=record.to_payload(),
                timeout=self._save_timeout,
            )
        except httpx.HTTPError as exc:
            raise TransientApiError(
                f"Jobs API unreachable: {exc.__class__.__name__}: {exc}"
            ) from exc

        if response.status_code == 409:
            return SaveOutcome.duplicate()

        if not response.is_success:
            raise TransientApiError(
                f"Jobs API returned {response.status_code}: {_error_text(response)}",
                status_code=response.status_code,
            )

        try:
            job_id = response.json().get("id")
        except (ValueError, AttributeError):
            job_id = None
        if job_id is None:
            raise TransientApiError(
                f"Jobs API returned {response.status_code} without an id",
                status_code=response.status_code,
            )
        return SaveOutcome.saved(str(job_id))


def _error_text(response: httpx.Response) -> str:
    """Best-effort error message from an API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return str(body)[:200]
