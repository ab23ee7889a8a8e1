from __future__ import annotations

import pytest

from pyloka._clock import ManualClock
from pyloka.models.notification import NotificationItem
from pyloka.notifications.lifecycle import LifecycleState, NotificationLifecycle


def _lifecycle(clock: ManualClock, closed: list[int], *, persistent: bool = False) -> NotificationLifecycle:
    item = NotificationItem(id=7, title="Pesanan Baru Masuk!", body="Budi", is_persistent=persistent)
    return NotificationLifecycle(item, clock=clock, on_close=closed.append, auto_dismiss_ms=2500)


@pytest.mark.asyncio
async def test_timed_item_closes_after_window() -> None:
    clock = ManualClock()
    closed: list[int] = []
    lifecycle = _lifecycle(clock, closed)

    lifecycle.start()
    assert lifecycle.state is LifecycleState.ACTIVE_TIMED
    assert lifecycle.has_timer

    await clock.advance(2499)
    assert closed == []

    await clock.advance(1)
    assert closed == [7]
    assert lifecycle.state is LifecycleState.CLOSING


@pytest.mark.asyncio
async def test_hover_pauses_and_hover_end_restarts_full_window() -> None:
    clock = ManualClock()
    closed: list[int] = []
    lifecycle = _lifecycle(clock, closed)
    lifecycle.start()

    await clock.advance(2000)
    lifecycle.hover_start()
    assert lifecycle.state is LifecycleState.PAUSED
    assert not lifecycle.has_timer

    await clock.advance(10_000)
    assert closed == []

    lifecycle.hover_end()
    assert lifecycle.state is LifecycleState.ACTIVE_TIMED
    await clock.advance(2499)
    assert closed == []
    await clock.advance(1)
    assert closed == [7]


@pytest.mark.asyncio
async def test_repeated_hover_toggles_leave_one_timer() -> None:
    clock = ManualClock()
    closed: list[int] = []
    lifecycle = _lifecycle(clock, closed)
    lifecycle.start()

    for _ in range(5):
        lifecycle.hover_start()
        lifecycle.hover_end()

    assert len(clock.pending) == 1
    await clock.advance(2500)
    assert closed == [7]


@pytest.mark.asyncio
async def test_persistent_item_never_auto_dismisses() -> None:
    clock = ManualClock()
    closed: list[int] = []
    lifecycle = _lifecycle(clock, closed, persistent=True)
    lifecycle.start()

    assert lifecycle.state is LifecycleState.ACTIVE_UNTIMED
    lifecycle.hover_start()
    lifecycle.hover_end()
    assert clock.pending == []

    await clock.advance(60_000)
    assert closed == []

    lifecycle.close()
    assert closed == [7]


@pytest.mark.asyncio
async def test_manual_close_notifies_once_and_cancels_timer() -> None:
    clock = ManualClock()
    closed: list[int] = []
    lifecycle = _lifecycle(clock, closed)
    lifecycle.start()

    lifecycle.close()
    lifecycle.close()
    await clock.advance(5000)

    assert closed == [7]
    assert clock.pending == []


@pytest.mark.asyncio
async def test_dispose_cancels_timer_without_notifying() -> None:
    clock = ManualClock()
    closed: list[int] = []
    lifecycle = _lifecycle(clock, closed)
    lifecycle.start()

    lifecycle.dispose()
    await clock.advance(5000)
    assert closed == []
    assert lifecycle.closed
