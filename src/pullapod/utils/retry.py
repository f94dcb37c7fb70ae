"""Retry utilities for network calls.

Implements exponential backoff with jitter for transient failures. Only the
RSS and audio download paths retry; the batch fetch behind ``recent`` reports
failures per feed instead.
"""

import asyncio
import logging
from collections.abc import Callable
from functools import wraps

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from pullapod.utils.errors import (
    APIError,
    AuthenticationError,
    NetworkConnectionError,
    NetworkTimeoutError,
    RateLimitError,
    ServerError,
)

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    NetworkConnectionError,
    NetworkTimeoutError,
    RateLimitError,
    ServerError,
)


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        max_wait_seconds: float = 30,
        min_wait_seconds: float = 1,
        jitter: bool = True,
    ):
        """Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts (including initial)
            max_wait_seconds: Maximum wait time between retries
            min_wait_seconds: Minimum wait time between retries
            jitter: Whether to add jitter to wait times
        """
        self.max_attempts = max_attempts
        self.max_wait_seconds = max_wait_seconds
        self.min_wait_seconds = min_wait_seconds
        self.jitter = jitter


DEFAULT_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    max_wait_seconds=30,
    min_wait_seconds=1,
    jitter=True,
)

# Fast configuration for testing (minimal delays)
TEST_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    max_wait_seconds=0.1,
    min_wait_seconds=0.01,
    jitter=False,
)


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging.

    Args:
        retry_state: Tenacity retry state
    """
    if retry_state.outcome and retry_state.outcome.failed:
        exception = retry_state.outcome.exception()
        attempt_number = retry_state.attempt_number

        logger.warning(
            f"Retry attempt {attempt_number} failed: {type(exception).__name__}: {exception}"
        )


def _build_wait(config: RetryConfig):
    backoff = wait_exponential(multiplier=config.min_wait_seconds, max=config.max_wait_seconds)
    if not config.jitter:
        return backoff
    return backoff + wait_random(0, config.min_wait_seconds)


def _build_retrying(config: RetryConfig, retry_on: tuple[type[Exception], ...]):
    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=_build_wait(config),
        retry=retry_if_exception_type(retry_on),
        before_sleep=log_retry_attempt,
        reraise=True,
    )


def with_retry(
    config: RetryConfig | None = None,
    retry_on: tuple[type[Exception], ...] | None = None,
) -> Callable:
    """Decorator for adding retry logic with exponential backoff.

    Works for plain functions and coroutine functions. When ``config`` is
    omitted the module's ``DEFAULT_RETRY_CONFIG`` is looked up on every call,
    so tests can swap it for ``TEST_RETRY_CONFIG``.

    Usage:
        @with_retry()
        async def fetch():
            ...

        @with_retry(retry_on=(NetworkTimeoutError,))
        def slow_call():
            ...

    Args:
        config: Retry configuration (uses DEFAULT_RETRY_CONFIG if None)
        retry_on: Exception types to retry on (uses RETRYABLE_ERRORS if None)

    Returns:
        Decorated function with retry logic
    """
    retry_types = retry_on or RETRYABLE_ERRORS

    def decorator(func: Callable) -> Callable:
        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                active = config or DEFAULT_RETRY_CONFIG
                try:
                    return await _build_retrying(active, retry_types)(func)(*args, **kwargs)
                except Exception as e:
                    logger.error(
                        f"Function {func.__name__} failed after retries: "
                        f"{type(e).__name__}: {e}"
                    )
                    raise

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            active = config or DEFAULT_RETRY_CONFIG
            try:
                return _build_retrying(active, retry_types)(func)(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Function {func.__name__} failed after retries: "
                    f"{type(e).__name__}: {e}"
                )
                raise

        return wrapper

    return decorator


def with_network_retry(config: RetryConfig | None = None) -> Callable:
    """Retry decorator for network calls (timeouts, connection errors).

    Args:
        config: Custom retry configuration (uses DEFAULT_RETRY_CONFIG if None)

    Returns:
        Decorated function with network retry logic
    """
    return with_retry(
        config=config,
        retry_on=(NetworkTimeoutError, NetworkConnectionError),
    )


def classify_http_error(status_code: int, error_message: str = "") -> APIError:
    """Classify an HTTP error status into the matching API error.

    Args:
        status_code: HTTP status code
        error_message: Reason phrase or error body

    Returns:
        Appropriate exception instance
    """
    if status_code == 429:
        return RateLimitError(
            f"Rate limit exceeded: {error_message}",
            status_code=status_code,
            suggestion="Wait a moment and try again.",
        )

    if 500 <= status_code < 600:
        return ServerError(
            f"Server error (HTTP {status_code}): {error_message}",
            status_code=status_code,
        )

    if status_code in (401, 403):
        return AuthenticationError(
            f"Authentication failed (HTTP {status_code}): {error_message}",
            status_code=status_code,
            suggestion="Check PODCAST_INDEX_API_KEY and PODCAST_INDEX_API_SECRET.",
        )

    return APIError(f"HTTP {status_code}: {error_message}", status_code=status_code)
