"""
Bounded fixed-delay retry.

Used at startup to wait for dependent services to start listening:
a failing operation is retried every `delay_s` seconds until it succeeds
or `max_attempts` is reached, then the last error propagates.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and fixed delay between attempts."""

    max_attempts: int
    delay_s: float
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay_s < 0:
            raise ValueError("delay_s must be >= 0")

    @property
    def max_wait_s(self) -> float:
        """Upper bound of time spent sleeping between attempts."""
        return (self.max_attempts - 1) * self.delay_s


# Gateway waiting for its subschemas at cold start (~3s window)
GATEWAY_STARTUP_POLICY = RetryPolicy(max_attempts=10, delay_s=0.3)

# Registry probing each configured service (~750ms window)
REGISTRY_PROBE_POLICY = RetryPolicy(max_attempts=5, delay_s=0.15)


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.warning(
        "Attempt failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(error) if error else None,
    )


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run `operation` under `policy`.

    Args:
        operation: Zero-argument coroutine function, called once per attempt
        policy: Attempt budget and delay
        sleep: Awaitable sleep (injectable for tests)

    Returns:
        The first successful result

    Raises:
        The exception of the final attempt, unchanged
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_fixed(policy.delay_s),
        retry=retry_if_exception_type(policy.retry_on),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()
    raise AssertionError("unreachable")  # pragma: no cover
