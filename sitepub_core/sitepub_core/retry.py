"""Bounded retry with exponential backoff for flaky filesystem operations.

Removing files from a live deploy directory can fail transiently (a web
server holding a handle, an antivirus scan, NFS hiccups).  Callers wrap
such operations in :func:`retry_with_backoff` and decide themselves what to
do once the retries are exhausted.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import TypeVar

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig(BaseModel):
    """How often and how patiently to retry a failing operation."""

    max_retries: int = Field(
        default=2,
        ge=0,
        description="Extra attempts after the first failure; 0 disables retrying.",
    )
    base_delay: float = Field(
        default=0.1,
        ge=0.0,
        description="Seconds to wait before the first retry; doubled for each later one.",
    )
    max_delay: float = Field(
        default=2.0,
        ge=0.0,
        description="Ceiling for any single wait, in seconds.",
    )
    jitter: bool = Field(
        default=False,
        description="Scale each wait by a random factor between 0.5 and 1.5.",
    )


def _compute_delay(attempt: int, config: RetryConfig) -> float:
    """Seconds to sleep after failed attempt number *attempt* (0-based)."""
    delay = min(config.base_delay * 2**attempt, config.max_delay)
    if config.jitter:
        delay *= random.uniform(0.5, 1.5)  # noqa: S311
    return delay


def retry_with_backoff(
    fn: Callable[[], T],
    config: RetryConfig,
    retryable_exceptions: tuple[type[Exception], ...] = (OSError,),
) -> T:
    """Call *fn* until it succeeds or the retries are exhausted.

    Parameters
    ----------
    fn:
        A zero-argument callable, invoked from scratch on every attempt.
    config:
        Number of retries and backoff timing.
    retryable_exceptions:
        Only these exception types trigger a retry; anything else
        propagates immediately.

    Raises
    ------
    Exception
        Whatever *fn* raised on its final attempt.
    """
    attempts = config.max_retries + 1
    for attempt in range(attempts):
        try:
            return fn()
        except retryable_exceptions as exc:
            if attempt == attempts - 1:
                raise
            delay = _compute_delay(attempt, config)
            logger.warning("Attempt %d/%d failed (%s); retrying in %.2fs", attempt + 1, attempts, exc, delay)
            time.sleep(delay)
    raise AssertionError("unreachable")
