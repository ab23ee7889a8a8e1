"""Delay scheduling behind an injectable clock.

Every component that waits on time goes through a :class:`Clock` instead
of calling ``loop.call_later`` or ``asyncio.sleep`` directly.  Production
code uses :class:`LoopClock`; tests drive a :class:`ManualClock` forward
explicitly so no test waits on wall time.

All delays are in milliseconds.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Protocol

# Event-loop iterations run after each virtual timer fires, so tasks woken
# by the callback get to run before the next deadline is processed.
_DRAIN_ITERATIONS = 25


class TimerHandle:
    """A scheduled callback.  Fires at most once; cancelling is idempotent."""

    __slots__ = ("deadline", "_callback", "_cancelled", "_fired", "_native")

    def __init__(self, deadline: float, callback: Callable[[], None]) -> None:
        self.deadline = deadline
        self._callback = callback
        self._cancelled = False
        self._fired = False
        self._native: asyncio.TimerHandle | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def active(self) -> bool:
        """``True`` while the callback is still due to run."""
        return not (self._cancelled or self._fired)

    def _fire(self) -> None:
        if not self.active:
            return
        self._fired = True
        self._callback()

    def _cancel(self) -> None:
        if not self.active:
            return
        self._cancelled = True
        if self._native is not None:
            self._native.cancel()
            self._native = None

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "fired" if self._fired else "pending"
        return f"<TimerHandle deadline={self.deadline:.0f}ms {state}>"


class Clock(Protocol):
    """Structural clock interface used by every timed component."""

    def now(self) -> float:
        """Current time in milliseconds (monotonic, arbitrary origin)."""
        ...

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* once, no earlier than *delay_ms* from now."""
        ...

    def cancel(self, handle: TimerHandle | None) -> None:
        """Cancel *handle*.  No-op for ``None``, fired or cancelled handles."""
        ...


class LoopClock:
    """Clock backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self._get_loop().time() * 1000.0

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._get_loop()
        delay = max(0.0, float(delay_ms))
        handle = TimerHandle(self.now() + delay, callback)
        handle._native = loop.call_later(delay / 1000.0, handle._fire)
        return handle

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is not None:
            handle._cancel()


class ManualClock:
    """Virtual clock for tests.

    Time only moves when :meth:`advance` is awaited.  Due callbacks fire in
    deadline order (ties in scheduling order), and the event loop is given a
    chance to run woken tasks after each one.

    Usage::

        clock = ManualClock()
        detector = OrderChangeDetector(client, clock=clock, on_new_order=...)
        detector.start()
        await clock.advance(5000)
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, float(delay_ms)), callback)
        heapq.heappush(self._queue, (handle.deadline, next(self._seq), handle))
        return handle

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is not None:
            handle._cancel()

    @property
    def pending(self) -> list[TimerHandle]:
        """Outstanding handles in firing order."""
        return [entry[2] for entry in sorted(self._queue) if entry[2].active]

    async def advance(self, delay_ms: float) -> None:
        """Move virtual time forward by *delay_ms*, firing everything due."""
        target = self._now + max(0.0, float(delay_ms))
        await _drain()
        while True:
            while self._queue and not self._queue[0][2].active:
                heapq.heappop(self._queue)
            if not self._queue or self._queue[0][0] > target:
                break
            deadline, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, deadline)
            handle._fire()
            await _drain()
        self._now = target
        await _drain()


async def _drain() -> None:
    for _ in range(_DRAIN_ITERATIONS):
        await asyncio.sleep(0)


async def sleep(clock: Clock, delay_ms: float) -> None:
    """Suspend the current task for *delay_ms* on *clock*.

    Cancelling the awaiting task cancels the underlying timer.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[None] = loop.create_future()

    def _wake() -> None:
        if not future.done():
            future.set_result(None)

    handle = clock.schedule(delay_ms, _wake)
    try:
        await future
    finally:
        clock.cancel(handle)
