"""Retry strategies: exponential backoff for transient API failures and
bounded retry loops driven by an explicit result type."""

import time
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, TypeVar, Optional

import requests

from ucloud_network.utils.errors import WaitTimeoutError
from ucloud_network.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class RetryStrategy:
    """Implements exponential backoff retry strategy for transient errors."""

    # HTTP status codes from the API gateway that should trigger a retry
    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    # Network-related exceptions that should trigger a retry
    RETRYABLE_EXCEPTIONS = (
        requests.ConnectionError,
        requests.Timeout,
        ConnectionError,
        TimeoutError,
    )

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = True
    ):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts
            base_delay: Base delay in seconds for first retry
            max_delay: Maximum delay in seconds between retries
            exponential_base: Base for exponential backoff calculation
            jitter: Whether to add random jitter to delay
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """Determine if an error should trigger a retry.

        Args:
            error: The exception that occurred
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the error is retryable and max retries not exceeded
        """
        if attempt >= self.max_retries:
            return False

        if isinstance(error, self.RETRYABLE_EXCEPTIONS):
            return True

        if isinstance(error, requests.HTTPError) and error.response is not None:
            return error.response.status_code in self.RETRYABLE_STATUS_CODES

        return False

    def get_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds before next retry
        """
        delay = min(
            self.base_delay * (self.exponential_base ** attempt),
            self.max_delay
        )

        # Add jitter if enabled (random value between 0 and 10% of delay)
        if self.jitter:
            delay += random.uniform(0, delay * 0.1)

        return delay

    def execute_with_retry(
        self,
        func: Callable[..., T],
        *args,
        **kwargs
    ) -> T:
        """Execute a function with retry logic.

        Args:
            func: Function to execute
            *args: Positional arguments for the function
            **kwargs: Keyword arguments for the function

        Returns:
            Result of the function call

        Raises:
            The last exception if all retries are exhausted
        """
        attempt = 0
        while True:
            try:
                result = func(*args, **kwargs)
                if attempt > 0:
                    logger.info(f"Operation succeeded after {attempt} retries")
                return result

            except Exception as e:
                if not self.should_retry(e, attempt):
                    logger.debug(f"Error is not retryable or max retries exceeded: {e}")
                    raise

                delay = self.get_delay(attempt)
                logger.warning(
                    f"Attempt {attempt + 1}/{self.max_retries + 1} failed: "
                    f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                )
                time.sleep(delay)
                attempt += 1


class RetryOutcome(Enum):
    """How a single attempt inside retry_until ended."""
    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass
class RetryResult(Generic[T]):
    """Result of one attempt: a value on success, an error otherwise."""
    outcome: RetryOutcome
    value: Optional[T] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "RetryResult[T]":
        return cls(RetryOutcome.SUCCESS, value=value)

    @classmethod
    def retryable(cls, error: Exception) -> "RetryResult[T]":
        return cls(RetryOutcome.RETRYABLE, error=error)

    @classmethod
    def terminal(cls, error: Exception) -> "RetryResult[T]":
        return cls(RetryOutcome.TERMINAL, error=error)


def retry_until(
    attempt: Callable[[], RetryResult[T]],
    timeout: float,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
) -> Optional[T]:
    """Call ``attempt`` until it succeeds, fails terminally or time runs out.

    Sleeps with exponential backoff between retryable attempts. A terminal
    result raises its error at once. Running past ``timeout`` seconds raises
    WaitTimeoutError chained to the last retryable error.

    Args:
        attempt: Zero-argument callable returning a RetryResult
        timeout: Wall-clock ceiling in seconds
        base_delay: First backoff delay in seconds
        max_delay: Upper bound for a single backoff delay

    Returns:
        The value carried by the successful RetryResult
    """
    backoff = RetryStrategy(base_delay=base_delay, max_delay=max_delay, jitter=False)
    deadline = time.monotonic() + timeout
    tries = 0

    while True:
        result = attempt()

        if result.outcome is RetryOutcome.SUCCESS:
            return result.value
        if result.outcome is RetryOutcome.TERMINAL:
            raise result.error

        tries += 1
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise WaitTimeoutError(
                f"timeout after {timeout:.0f}s and {tries} attempts: {result.error}",
                cause=result.error
            ) from result.error

        delay = min(backoff.get_delay(tries - 1), remaining)
        logger.debug(f"Retryable condition ({result.error}), next attempt in {delay:.2f}s")
        time.sleep(delay)
