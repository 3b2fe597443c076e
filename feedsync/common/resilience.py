"""
Retry strategies for calls that leave the process.

Only feed retrieval over the network is retried. Synchronization
never retries.
"""

import logging
from typing import Callable, Tuple, Type

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log,
)

logger = logging.getLogger(__name__)

RETRYABLE_FETCH_ERRORS: Tuple[Type[BaseException], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


def retry_feed_fetch(attempts: int = 3, max_wait: float = 10.0) -> Callable:
    """
    Retry decorator for feed downloads.

    Retries transport failures with exponential backoff (1s, 2s, 4s, ...).
    HTTP status errors are not retried. The last exception is re-raised.

    Args:
        attempts: Total number of attempts, including the first
        max_wait: Upper bound for a single backoff in seconds
    """
    return retry(
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential(multiplier=1, min=1, max=max_wait),
        retry=retry_if_exception_type(RETRYABLE_FETCH_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG),
        reraise=True,
    )
