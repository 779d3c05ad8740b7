"""
backoff_policy.py — bounded exponential backoff as an explicit state machine.

  Attempting(n) ──ok──────────────────────────► Success
       │
       └─retryable error─► n+1 < max_attempts ─► Backoff(delay = base * 2**n) ─► Attempting(n+1)
                           otherwise          ─► Exhausted

No jitter and no delay cap: the attempt bound is the only latency bound.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryState:
    """Lives for one submission only."""
    attempt: int = 0                          # 0-based index of the attempt in flight
    last_error: Optional[BaseException] = None


@dataclass(frozen=True)
class Backoff:
    delay: float


@dataclass(frozen=True)
class Exhausted:
    last_error: BaseException


Step = Union[Backoff, Exhausted]


@dataclass(frozen=True)
class BackoffPolicy:
    max_attempts: int = 5
    base_delay: float = 1.0      # seconds

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** attempt)

    def on_failure(self, state: RetryState, error: BaseException) -> Step:
        """Record a retryable failure of the current attempt and decide what comes next."""
        state.last_error = error
        if state.attempt + 1 >= self.max_attempts:
            return Exhausted(error)
        delay = self.delay_for(state.attempt)
        state.attempt += 1
        return Backoff(delay)


async def run_with_backoff(
    call: Callable[[], Awaitable[T]],
    policy: BackoffPolicy,
    retry_on: tuple[type[BaseException], ...],
    on_exhausted: Callable[[BaseException, int], BaseException],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "call",
) -> T:
    """
    Run call() until it succeeds, raises something outside retry_on, or the
    policy is exhausted. on_exhausted(last_error, attempts) builds the
    exception raised at the end.
    """
    state = RetryState()
    while True:
        try:
            return await call()
        except retry_on as exc:
            step = policy.on_failure(state, exc)
            if isinstance(step, Exhausted):
                logger.error("[%s] Giving up after %d attempts: %s", label, policy.max_attempts, exc)
                raise on_exhausted(step.last_error, policy.max_attempts) from exc
            logger.warning(
                "[%s] Attempt %d failed (%s). Retrying in %.1fs…",
                label, state.attempt, exc, step.delay,
            )
            await sleep(step.delay)
