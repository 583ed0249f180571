"""Error hierarchy for the crawler.

All crawler-specific errors extend CrawlerError. None of them is meant to
terminate a run: the runner catches them at site scope, the persistence
pipeline turns them into ``Failed`` outcomes, and extractors treat them as
soft misses.
"""

from __future__ import annotations


class CrawlerError(Exception):
    """Base error for all crawler-specific errors."""

    message: str = "Crawler error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class SchemaError(CrawlerError):
    """A site schema file could not be parsed or validated."""

    message = "Invalid site schema"


class NavigationError(CrawlerError):
    """Page navigation failed or timed out."""

    message = "Navigation failed"


class PaginationAbortedError(CrawlerError):
    """An interaction with the pagination control failed mid-loop."""

    message = "Pagination aborted"


class TransientApiError(CrawlerError):
    """The jobs API is unreachable or answered with a retryable status."""

    message = "Jobs API request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        **kwargs: object,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, status_code=status_code, **kwargs)


class RetryExhaustedError(CrawlerError):
    """An operation kept failing until the retry bound was reached."""

    message = "Retries exhausted"

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Gave up after {attempts} attempt(s): {last_error}",
            attempts=attempts,
        )
