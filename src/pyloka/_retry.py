"""Fixed-delay retry for capability calls that report a :class:`Result`."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pyloka._clock import Clock, sleep
from pyloka.ports import Result

_logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_delay(
    operation: Callable[[], Awaitable[Result[T]]],
    *,
    max_attempts: int,
    delay_ms: float,
    clock: Clock,
    name: str = "operation",
) -> Result[T]:
    """Run *operation* until it succeeds or *max_attempts* are used up.

    Waits *delay_ms* on *clock* between attempts.  Returns the first
    successful result, otherwise the last failure.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    attempt = 1
    while True:
        result = await operation()
        if result.ok or attempt >= max_attempts:
            return result
        _logger.debug("%s failed (attempt %d/%d): %s", name, attempt, max_attempts, result.error)
        await sleep(clock, delay_ms)
        attempt += 1
