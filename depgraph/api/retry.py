"""Retry Logic with Exponential Backoff for read requests.

The dependency engine never retries on its own. The request boundary retries
read operations when a collaborator reports a transient failure; writes are
not retried because a repeated add or remove is not idempotent.
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

import structlog

from depgraph.errors import DependencyError, StoreUnavailableError

if TYPE_CHECKING:
    from depgraph.config import RetrySettings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class FailureType(Enum):
    """Classification of failure types for retry decisions.

    Attributes:
        TRANSIENT: Temporary failures that may succeed on retry (store down, timeout)
        PERMANENT: Failures that won't succeed on retry (domain validation)
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"


def classify_error(error: Exception) -> FailureType:
    """Classify an exception to determine if it's retryable.

    Args:
        error: The exception to classify

    Returns:
        FailureType indicating whether the error is retryable

    Example:
        >>> classify_error(StoreUnavailableError("connection reset"))
        <FailureType.TRANSIENT: 'transient'>
    """
    if isinstance(error, DependencyError):
        return FailureType.PERMANENT

    transient_errors = (
        StoreUnavailableError,
        TimeoutError,
        ConnectionError,
    )
    if isinstance(error, transient_errors):
        return FailureType.TRANSIENT

    return FailureType.PERMANENT


class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts, including the first
        base_delay_seconds: Base delay for exponential backoff
    """

    def __init__(self, max_attempts: int = 3, base_delay_seconds: float = 0.2):
        """Initialize retry configuration.

        Raises:
            ValueError: If parameters are invalid
        """
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        if base_delay_seconds < 0:
            msg = "base_delay_seconds must be non-negative"
            raise ValueError(msg)

        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds

    @classmethod
    def from_settings(cls, settings: "RetrySettings") -> "RetryConfig":
        """Create RetryConfig from the ``retry`` configuration section."""
        return cls(
            max_attempts=settings.max_attempts,
            base_delay_seconds=settings.base_delay_seconds,
        )

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after a failed ``attempt``: base * 2^(attempt-1)."""
        return self.base_delay_seconds * (2 ** (attempt - 1))


async def execute_with_retry(
    operation: str,
    func: Callable[[], Awaitable[T]],
    config: RetryConfig,
) -> T:
    """Run an async callable, retrying transient failures with exponential backoff.

    Args:
        operation: Name of the operation (for logging)
        func: Zero-argument coroutine factory; called once per attempt
        config: Retry settings

    Returns:
        Result of the first successful attempt

    Raises:
        Exception: The last error once attempts are exhausted, or the first
            permanent error
    """
    for attempt in range(1, config.max_attempts + 1):
        try:
            result = await func()
        except Exception as e:
            failure_type = classify_error(e)
            if failure_type is FailureType.PERMANENT or attempt >= config.max_attempts:
                if failure_type is FailureType.TRANSIENT:
                    logger.error(
                        "retry_exhausted",
                        operation=operation,
                        total_attempts=attempt,
                        error=str(e),
                    )
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                "retry_attempt_failed",
                operation=operation,
                attempt=attempt,
                max_attempts=config.max_attempts,
                error=str(e),
                error_type=type(e).__name__,
                delay_seconds=delay,
            )
            await asyncio.sleep(delay)
        else:
            if attempt > 1:
                logger.info("retry_succeeded", operation=operation, attempt=attempt)
            return result

    msg = f"Retry logic failed unexpectedly for {operation}"
    raise RuntimeError(msg)
