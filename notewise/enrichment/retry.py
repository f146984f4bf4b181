"""Bounded retry for provider calls."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import EnrichmentTimeoutError, RetryExhaustedError, TransientProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

BackoffFn = Callable[[int], float]
SleepFn = Callable[[float], Awaitable[None]]


def linear_backoff(base_delay: float = 1.0) -> BackoffFn:
    """Wait ``attempt * base_delay`` seconds after failed attempt ``attempt`` (1-indexed)."""

    def _delay(attempt: int) -> float:
        return attempt * base_delay

    return _delay


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    backoff: Optional[BackoffFn] = None,
    *,
    cancel_event: Optional[asyncio.Event] = None,
    deadline: Optional[float] = None,
    sleep: SleepFn = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or the attempt budget is spent.

    Only errors whose kind is retryable (plain ``TransientProviderError``) are
    retried; an exhausted inner retry and everything else propagate from
    the attempt that raised it.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total attempts including the first
        backoff: Maps the failed attempt number to a wait in seconds
        cancel_event: When set, pending waits are abandoned
        deadline: Event-loop time (``loop.time()``) no wait may run past
        sleep: Sleep coroutine, used when no cancel event is given
        label: Description for logging

    Returns:
        The operation's result

    Raises:
        RetryExhaustedError: All attempts failed transiently
        EnrichmentTimeoutError: Cancelled, or the next wait would pass the deadline
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if backoff is None:
        backoff = linear_backoff()

    last_error: Optional[TransientProviderError] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except TransientProviderError as e:
            if not e.error_kind.is_retryable():
                raise
            last_error = e
            if attempt == max_attempts:
                break

            delay = backoff(attempt)
            if e.retry_after is not None:
                delay = max(delay, e.retry_after)

            logger.warning(
                "Transient failure, retrying",
                extra={
                    "label": label,
                    "provider": e.provider,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "delay_seconds": delay,
                },
            )
            await _pause(delay, cancel_event=cancel_event, deadline=deadline, sleep=sleep, label=label)

    if last_error is None:
        raise RuntimeError("retry loop ended without an attempt")
    logger.error(
        "Retry budget exhausted",
        extra={"label": label, "provider": last_error.provider, "attempts": max_attempts},
    )
    raise RetryExhaustedError(max_attempts, last_error)


async def _pause(
    delay: float,
    *,
    cancel_event: Optional[asyncio.Event],
    deadline: Optional[float],
    sleep: SleepFn,
    label: str,
) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise EnrichmentTimeoutError(f"{label.capitalize()} was cancelled")

    if deadline is not None:
        remaining = deadline - asyncio.get_running_loop().time()
        if delay >= remaining:
            raise EnrichmentTimeoutError(
                f"{label.capitalize()} ran out of time while waiting to retry"
            )

    if cancel_event is None:
        await sleep(delay)
        return

    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return
    raise EnrichmentTimeoutError(f"{label.capitalize()} was cancelled")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for one enrichment path."""

    max_attempts: int = 3
    base_delay: float = 1.0

    @property
    def backoff(self) -> BackoffFn:
        return linear_backoff(self.base_delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
        sleep: SleepFn = asyncio.sleep,
        label: str = "operation",
    ) -> T:
        return await with_retry(
            operation,
            self.max_attempts,
            self.backoff,
            cancel_event=cancel_event,
            deadline=deadline,
            sleep=sleep,
            label=label,
        )
