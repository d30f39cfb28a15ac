import asyncio

import pytest

from staking_orchestrator.errors import ArgumentError, StakingTimeoutError
from staking_orchestrator.polling import PollOptions, PollOutcome, decide, poll_until_terminal


def test_decide_prefers_terminal_over_deadline():
    assert decide(True, 10, 5) is PollOutcome.DONE
    assert decide(False, 5, 5) is PollOutcome.TIMED_OUT
    assert decide(False, 4.9, 5) is PollOutcome.CONTINUE


def test_poll_options_validation():
    with pytest.raises(ArgumentError):
        PollOptions(interval_seconds=-1, timeout_seconds=1)
    with pytest.raises(ArgumentError):
        PollOptions(interval_seconds=1, timeout_seconds=0)


def test_terminal_result_on_last_attempt_is_not_a_timeout(clock):
    calls = []

    async def step() -> bool:
        calls.append(clock.now)
        clock.now += 2
        return len(calls) == 2

    asyncio.run(poll_until_terminal(step, PollOptions(0.5, 3), clock=clock, sleep=clock.sleep))
    assert calls == [0, 2.5]


def test_timeout_uses_default_sleep(monkeypatch, clock):
    sleeps = []

    async def fake_sleep(interval: float) -> None:
        sleeps.append(interval)
        clock.now += interval

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)

    async def step() -> bool:
        return False

    with pytest.raises(StakingTimeoutError) as excinfo:
        asyncio.run(poll_until_terminal(step, PollOptions(2, 5), clock=clock, operation_id="op-9"))
    assert sleeps == [2, 2, 2]
    assert excinfo.value.operation_id == "op-9"
    assert excinfo.value.timeout == 5
