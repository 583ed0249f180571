"""In-memory values passed between pipeline stages.

ListingReference and JobRecord are single-owner values handed linearly from
the listing crawl to the detail extractor to the persistence pipeline.
SaveOutcome is the terminal classification of one save, and PipelineStats
holds the aggregate counters reported at the end of a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from job_crawler.models.normalizer import split_job_url


@dataclass(frozen=True)
class ListingReference:
    """A job posting discovered on a listing page."""

    url: str
    source: str  # path suffix the listing was found under
    website: str
    job_name: str | None = None
    company_name: str | None = None


@dataclass(frozen=True)
class JobRecord:
    """A fully extracted job posting."""

    url: str
    job_name: str
    company_name: str
    website_name: str
    source: str
    job_description: str | list[str] | None = None
    location: str | list[str] | None = None
    publication_date: str | list[str] | None = None

    def to_payload(self) -> dict:
        """Build the job-creation request body."""
        website_url, job_url = split_job_url(self.url)
        return {
            "job_name": self.job_name,
            "job_description": self.job_description,
            "company_name": self.company_name,
            "location": self.location,
            "publication_date": self.publication_date,
            "website_name": self.website_name,
            "website_url": website_url,
            "job_url": job_url,
            "tags": [],
        }


class SaveStatus(str, Enum):
    """Terminal status of a persistence attempt."""

    SAVED = "saved"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class SaveOutcome:
    """Result of saving one JobRecord."""

    status: SaveStatus
    job_id: str | None = None
    reason: str | None = None

    @classmethod
    def saved(cls, job_id: str) -> "SaveOutcome":
        return cls(SaveStatus.SAVED, job_id=job_id)

    @classmethod
    def duplicate(cls) -> "SaveOutcome":
        return cls(SaveStatus.DUPLICATE)

    @classmethod
    def failed(cls, reason: str) -> "SaveOutcome":
        return cls(SaveStatus.FAILED, reason=reason)


@dataclass
class PipelineStats:
    """Running aggregate counters for one persistence run."""

    processed: int = 0
    saved: int = 0
    duplicate: int = 0
    failed: int = 0
    skipped: int = 0
    peak_in_flight: int = 0

    @property
    def success_rate(self) -> float:
        """Percentage of processed references that ended up saved."""
        if self.processed == 0:
            return 0.0
        return self.saved / self.processed * 100

    def record(self, outcome: SaveOutcome) -> None:
        if outcome.status is SaveStatus.SAVED:
            self.saved += 1
        elif outcome.status is SaveStatus.DUPLICATE:
            self.duplicate += 1
        else:
            self.failed += 1
