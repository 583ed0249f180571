"""Resilience components for the crawler."""

from job_crawler.resilience.retry import linear_backoff, with_retry

__all__ = [
    "linear_backoff",
    "with_retry",
]
