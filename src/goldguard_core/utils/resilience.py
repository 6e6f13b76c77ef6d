"""Retry policies for GoldGuard connections.

Two policies:
- service_startup_retry: verifying infrastructure (Redis) at startup
- create_custom_retry(): caller-tuned retries, e.g. re-sending queued reports

Interactive paths (reconciliation, verification) do not retry: they degrade
immediately and let the next poll tick try again.
"""

import logging
from typing import Callable, Tuple, Type, TypeVar

from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_retry_attempt(retry_state: RetryCallState) -> None:
    if retry_state.attempt_number > 1:
        logger.warning(
            f"[Resilience] Retry attempt {retry_state.attempt_number} for "
            f"{retry_state.fn.__name__} after {retry_state.seconds_since_start:.1f}s. "
            f"Exception: {retry_state.outcome.exception() if retry_state.outcome else 'Unknown'}"
        )


# Startup connections: 2s, 4s, 8s, 16s between 5 attempts, then re-raise
service_startup_retry = retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=2, max=16),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def create_custom_retry(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 8,
    multiplier: float = 1,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a retry decorator with specific parameters.

    Args:
        max_attempts: Maximum number of attempts (including the first)
        min_wait: Minimum wait between attempts (seconds)
        max_wait: Maximum wait between attempts (seconds)
        multiplier: Exponential backoff multiplier
        retry_on: Exception types that trigger another attempt

    Example:
        ```python
        sync_retry = create_custom_retry(max_attempts=3, retry_on=(RemoteUnavailable,))

        @sync_retry
        async def push_report():
            ...
        ```
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        after=_log_retry_attempt,
        reraise=True,
    )
