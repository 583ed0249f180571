"""Bounded retry combinator.

``with_retry`` runs an async operation up to ``max_attempts`` times,
sleeping ``backoff(attempt)`` seconds between attempts. Only exceptions
listed in ``retry_on`` are retried; anything else propagates immediately.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from job_crawler.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def linear_backoff(base_seconds: float) -> Callable[[int], float]:
    """Return a backoff function yielding ``attempt * base_seconds``.

    With a base of 1s the schedule is 1s, 2s, 3s, ...
    """

    def _backoff(attempt: int) -> float:
        return attempt * base_seconds

    return _backoff


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    backoff: Callable[[int], float],
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Call *operation* until it succeeds or *max_attempts* is reached.

    Raises
    ------
    RetryExhaustedError
        If every attempt raised one of *retry_on*.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: BaseException | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            last_error = exc

        if attempt == max_attempts:
            break

        delay = backoff(attempt)
        logger.warning(
            "%s failed (attempt %d/%d): %s, retrying in %.1fs",
            label,
            attempt,
            max_attempts,
            last_error,
            delay,
            extra={"attempt": attempt},
        )
        await sleep(delay)

    logger.error(
        "%s failed after %d attempts: %s",
        label,
        max_attempts,
        last_error,
        extra={"attempt": max_attempts},
    )
    raise RetryExhaustedError(max_attempts, last_error)
