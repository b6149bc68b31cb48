"""
Retry policy and async retry executor.

The policy is a plain value (attempts, base delay, multiplier) so the backoff
schedule can be inspected and tested without running anything. The executor
takes the sleep function as a parameter; tests pass a fake clock instead of
``asyncio.sleep``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..exceptions import RetryExhaustedError
from ..logging_utils import log_event

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff policy.

    Attributes:
        max_attempts: Total attempts, including the first one
        base_delay: Seconds to wait after the first failure
        multiplier: Factor applied to the delay after each further failure
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")

    def delay_for(self, attempt: int) -> float:
        """Delay after the failed attempt with 0-based index ``attempt``."""
        return self.base_delay * (self.multiplier ** attempt)

    def delays(self) -> list[float]:
        """Every delay the policy can wait, in order (none after the last attempt)."""
        return [self.delay_for(i) for i in range(self.max_attempts - 1)]


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Sleep = asyncio.sleep,
    logger: logging.Logger | None = None,
    label: str = "",
) -> T:
    """Await ``fn()`` until it succeeds or the policy runs out of attempts.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        policy: Attempt count and backoff schedule
        retry_on: Exception types that trigger a retry; anything else propagates
        sleep: Awaitable sleep used for backoff waits
        logger: Optional logger for retry events
        label: Human-readable name of the operation for logs and errors

    Returns:
        The first successful result of ``fn``

    Raises:
        RetryExhaustedError: If every attempt raised one of ``retry_on``
    """
    for attempt in range(policy.max_attempts - 1):
        try:
            return await fn()
        except retry_on as exc:
            delay = policy.delay_for(attempt)
            log_event(
                logger,
                f"Retry {attempt + 1}/{policy.max_attempts} for {label or 'operation'} "
                f"after {delay:g}s. Error: {exc}",
                level=logging.WARNING,
                event="retry",
                label=label,
                attempt=attempt + 1,
                max_attempts=policy.max_attempts,
                delay=delay,
                error=f"{type(exc).__name__}: {exc}",
            )
            await sleep(delay)

    # Final attempt: no backoff after it
    try:
        return await fn()
    except retry_on as exc:
        raise RetryExhaustedError(label, policy.max_attempts, exc) from exc
