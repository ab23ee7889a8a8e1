from __future__ import annotations

import asyncio

import pytest

from pyloka._clock import ManualClock
from pyloka._retry import retry_with_delay
from pyloka.exceptions import SpeechError
from pyloka.ports import Result


class _Flaky:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls: list[float] = []

    def bind(self, clock: ManualClock):
        async def _op() -> Result[str]:
            self.calls.append(clock.now())
            if len(self.calls) <= self.failures:
                return Result.failure(SpeechError(f"attempt {len(self.calls)} failed"))
            return Result.success("spoken")

        return _op


@pytest.mark.asyncio
async def test_retry_succeeds_on_second_attempt_after_delay() -> None:
    clock = ManualClock()
    flaky = _Flaky(failures=1)

    task = asyncio.create_task(retry_with_delay(flaky.bind(clock), max_attempts=2, delay_ms=500, clock=clock))
    await clock.advance(499)
    assert flaky.calls == [0]
    assert not task.done()

    await clock.advance(1)
    result = await task
    assert result.ok
    assert result.value == "spoken"
    assert flaky.calls == [0, 500]


@pytest.mark.asyncio
async def test_retry_returns_last_failure_when_attempts_exhausted() -> None:
    clock = ManualClock()
    flaky = _Flaky(failures=5)

    task = asyncio.create_task(retry_with_delay(flaky.bind(clock), max_attempts=2, delay_ms=500, clock=clock))
    await clock.advance(2000)
    result = await task

    assert not result.ok
    assert isinstance(result.error, SpeechError)
    assert "attempt 2" in str(result.error)
    assert len(flaky.calls) == 2


@pytest.mark.asyncio
async def test_retry_does_not_wait_after_first_success() -> None:
    clock = ManualClock()
    flaky = _Flaky(failures=0)

    result = await retry_with_delay(flaky.bind(clock), max_attempts=3, delay_ms=500, clock=clock)
    assert result.ok
    assert clock.pending == []


@pytest.mark.asyncio
async def test_retry_rejects_zero_attempts() -> None:
    clock = ManualClock()
    with pytest.raises(ValueError):
        await retry_with_delay(_Flaky(0).bind(clock), max_attempts=0, delay_ms=1, clock=clock)
