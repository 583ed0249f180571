"""Public models for the crawler."""

from job_crawler.models.records import (
    JobRecord,
    ListingReference,
    PipelineStats,
    SaveOutcome,
    SaveStatus,
)

__all__ = [
    "JobRecord",
    "ListingReference",
    "PipelineStats",
    "SaveOutcome",
    "SaveStatus",
]
