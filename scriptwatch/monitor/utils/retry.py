"""
Retry logic with exponential backoff for rate limit handling.
"""

import asyncio
import logging
import re
from functools import wraps

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)

logger = logging.getLogger(__name__)


# Exception types that should trigger retries
RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    httpx.TransportError,
)

RATE_LIMIT_INDICATORS = (
    "rate_limit",
    "rate limit",
    "ratelimit",
    "429",
    "too many requests",
    "overloaded",
    "capacity",
)


def is_rate_limit_error(exception: BaseException) -> bool:
    """Check if exception is a rate limit error from any provider."""
    error_str = str(exception).lower()
    return any(indicator in error_str for indicator in RATE_LIMIT_INDICATORS)


def is_retryable(exception: BaseException) -> bool:
    return isinstance(exception, RETRYABLE_EXCEPTIONS) or is_rate_limit_error(exception)


def extract_retry_after(exception: BaseException) -> float | None:
    """Try to extract retry-after seconds from exception."""
    response = getattr(exception, "response", None)
    headers = getattr(response, "headers", None)
    if headers is not None:
        retry_after = headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass

    match = re.search(r"retry.{0,10}?(\d+\.?\d*)\s*s", str(exception), re.IGNORECASE)
    if match:
        return float(match.group(1))

    return None


class RateLimitRetry:
    """
    Retry decorator for async callables that handles rate limits.

    - Exponential backoff for transient errors
    - Respects retry-after hints when the error carries one
    - Re-raises the last error once attempts are exhausted
    """

    def __init__(
        self,
        max_attempts: int = 5,
        min_wait: float = 1.0,
        max_wait: float = 60.0,
    ):
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait
        self._backoff = wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait)

    def _wait(self, retry_state: RetryCallState) -> float:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = extract_retry_after(exception) if exception else None
        if retry_after:
            return min(retry_after + 0.5, self.max_wait)
        return self._backoff(retry_state)

    def __call__(self, func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self._wait,
                retry=retry_if_exception(is_retryable),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    return await func(*args, **kwargs)

        return wrapper


# Pre-configured retry decorator for LLM calls
rate_limit_retry = RateLimitRetry(
    max_attempts=5,
    min_wait=1.0,
    max_wait=60.0,
)
