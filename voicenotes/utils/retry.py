"""Retry utilities with exponential backoff for remote service calls.

Two named policies are defined here because the transcription and completion
services fail differently:

- ``TRANSCRIPTION_RETRY_POLICY`` retries only connection resets/errors and
  5xx responses and bails on everything else.
- ``COMPLETION_RETRY_POLICY`` treats every error as transient and retries
  until the attempt budget is spent.
"""
from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_MESSAGE_PATTERN = re.compile(r"econnreset|connection error", re.IGNORECASE)


def get_status_code(exception: BaseException) -> Optional[int]:
    """Extract an HTTP status code from an SDK or HTTP client exception.

    Looks at ``status_code`` (openai/anthropic SDKs), ``status`` and
    ``response.status_code`` in that order.

    Args:
        exception: The exception to inspect

    Returns:
        The status code, or None if the exception carries none
    """
    for attr in ("status_code", "status"):
        value = getattr(exception, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exception, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_connection_or_server_error(exception: BaseException) -> bool:
    """Classify an error as retryable for transcription calls.

    Returns:
        True if the message mentions a connection reset/error, or the
        status code is 500 or above
    """
    if RETRYABLE_MESSAGE_PATTERN.search(str(exception)):
        return True
    status_code = get_status_code(exception)
    return status_code is not None and status_code >= 500


def always_retry(exception: BaseException) -> bool:
    """Classify every error as retryable."""
    return True


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including the initial attempt)
        base_delay: Base delay in seconds before first retry
        max_delay: Maximum delay in seconds between retries
        exponential_base: Base for exponential backoff calculation
        jitter: Whether to add random jitter to delays
        should_retry: Predicate deciding whether an error is worth another attempt
        name: Policy name used in log messages
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    should_retry: Callable[[BaseException], bool] = field(default=always_retry)
    name: str = "default"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base < 1:
            raise ValueError("exponential_base must be >= 1")
        if self.max_attempts > 10:
            raise ValueError("max_attempts should not exceed 10 for practical purposes")

    def calculate_backoff_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay with jitter and ceiling.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Calculated delay in seconds
        """
        return calculate_delay(
            attempt, self.base_delay, self.max_delay, self.exponential_base, self.jitter
        )


TRANSCRIPTION_RETRY_POLICY = RetryConfig(
    max_attempts=3,
    base_delay=1.0,
    max_delay=30.0,
    should_retry=is_connection_or_server_error,
    name="transcription",
)

COMPLETION_RETRY_POLICY = RetryConfig(
    max_attempts=3,
    base_delay=1.0,
    max_delay=30.0,
    should_retry=always_retry,
    name="completion",
)


class RetryExhaustedError(Exception):
    """Raised when all retry attempts have been exhausted.

    Attributes:
        attempts: Number of attempts made
        last_exception: The final exception that caused the retry to fail
        total_delay: Total time spent in delays
    """

    def __init__(self, attempts: int, last_exception: BaseException, total_delay: float) -> None:
        self.attempts = attempts
        self.last_exception = last_exception
        self.total_delay = total_delay
        super().__init__(
            f"Retry exhausted after {attempts} attempts over {total_delay:.2f}s. "
            f"Last error: {last_exception}"
        )


class RetryAbortedError(Exception):
    """Raised when an error is classified as not worth retrying (a bail).

    Attributes:
        attempts: Number of attempts made before bailing
        last_exception: The non-retryable exception
    """

    def __init__(self, attempts: int, last_exception: BaseException) -> None:
        self.attempts = attempts
        self.last_exception = last_exception
        super().__init__(f"Bailed after attempt {attempts}: {last_exception}")


def calculate_delay(
    attempt: int, base_delay: float, max_delay: float, exponential_base: float, jitter: bool = True
) -> float:
    """Calculate delay for a given retry attempt with exponential backoff and jitter.

    Args:
        attempt: Current attempt number (0-based)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential calculation
        jitter: Whether to add random jitter

    Returns:
        Calculated delay in seconds, always between 0 and max_delay
    """
    if attempt == 0:
        return 0.0

    base_backoff = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)

    if jitter:
        # ±25% random jitter
        jitter_range = base_backoff * 0.25
        base_backoff += random.uniform(-jitter_range, jitter_range)

    return max(0, min(base_backoff, max_delay))


async def call_with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig,
    label: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """Await ``func(*args, **kwargs)`` under the given retry policy.

    Args:
        func: Coroutine function to call
        *args: Positional arguments for ``func``
        config: Retry policy to apply
        label: Name used in log messages (defaults to the function name)
        **kwargs: Keyword arguments for ``func``

    Returns:
        The result of the first successful attempt

    Raises:
        RetryAbortedError: If ``config.should_retry`` rejects an error
        RetryExhaustedError: If every attempt failed with a retryable error
    """
    name = label or getattr(func, "__name__", "call")
    last_exception: Optional[BaseException] = None
    total_delay = 0.0

    for attempt in range(config.max_attempts):
        try:
            if attempt > 0:
                logger.info(f"Retry attempt {attempt + 1}/{config.max_attempts} for {name}")
            return await func(*args, **kwargs)

        except asyncio.CancelledError:
            raise

        except Exception as e:
            last_exception = e

            if not config.should_retry(e):
                logger.error(
                    f"Non-retriable error in {name} ({config.name} policy): {e}. Bailing..."
                )
                raise RetryAbortedError(attempt + 1, e) from e

            if attempt + 1 >= config.max_attempts:
                logger.error(f"All retry attempts exhausted for {name}: {e}")
                break

            delay = config.calculate_backoff_delay(attempt + 1)
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_attempts} failed for {name}: {e}. "
                f"Retrying in {delay:.2f}s..."
            )
            await asyncio.sleep(delay)
            total_delay += delay

    raise RetryExhaustedError(
        config.max_attempts, last_exception or Exception("Unknown error"), total_delay
    ) from last_exception
