"""Deadline bound polling shared by ``StakingOperation.wait`` and the custodial poller."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from .errors import ArgumentError, StakingTimeoutError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class PollOutcome(str, Enum):
    CONTINUE = "continue"
    DONE = "done"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollOptions:
    """Polling configuration when waiting for a terminal status."""

    interval_seconds: float
    timeout_seconds: float

    def __post_init__(self) -> None:
        if self.interval_seconds < 0:
            raise ArgumentError("interval_seconds must be non-negative")
        if self.timeout_seconds <= 0:
            raise ArgumentError("timeout_seconds must be positive")


def decide(terminal: bool, elapsed: float, timeout_seconds: float) -> PollOutcome:
    """Classify one observation of an operation.

    A terminal observation wins over an expired deadline.
    """

    if terminal:
        return PollOutcome.DONE
    if elapsed >= timeout_seconds:
        return PollOutcome.TIMED_OUT
    return PollOutcome.CONTINUE


class Deadline:
    """Fixed deadline measured from construction."""

    def __init__(self, timeout_seconds: float, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._timeout = timeout_seconds
        self._started = clock()

    @property
    def timeout(self) -> float:
        return self._timeout

    def elapsed(self) -> float:
        return self._clock() - self._started

    def expired(self) -> bool:
        return self.elapsed() >= self._timeout


async def poll_until_terminal(
    step: Callable[[], Awaitable[bool]],
    options: PollOptions,
    *,
    clock: Clock = time.monotonic,
    sleep: Optional[Sleep] = None,
    operation_id: Optional[str] = None,
) -> None:
    """Run ``step`` until it reports a terminal state or the deadline passes.

    ``step`` performs the network round-trips of one iteration and returns
    whether the operation is terminal afterwards.
    """

    pause = sleep or asyncio.sleep
    deadline = Deadline(options.timeout_seconds, clock)
    while not deadline.expired():
        terminal = await step()
        outcome = decide(terminal, deadline.elapsed(), deadline.timeout)
        if outcome is PollOutcome.DONE:
            return
        if outcome is PollOutcome.TIMED_OUT:
            break
        await pause(options.interval_seconds)
    elapsed = deadline.elapsed()
    logger.warning(
        "Staking operation %s still pending after %.1fs (timeout %.1fs)",
        operation_id,
        elapsed,
        options.timeout_seconds,
    )
    raise StakingTimeoutError(
        "Staking operation timed out",
        operation_id=operation_id,
        elapsed=elapsed,
        timeout=options.timeout_seconds,
    )
