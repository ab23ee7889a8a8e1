"""Polling detector for newly created orders.

The detector polls the pending-orders summary on a fixed interval and
compares the latest order id against the last one it saw:

* the first non-empty poll only records a baseline (pre-existing orders
  never alert);
* every later change of id emits exactly one new-order event;
* several orders arriving between two polls produce a single event for
  the most recent one, since the summary exposes no queue.

Transport failures are logged and the next tick simply polls again.
There is no backoff: a sustained outage produces one failed request
per interval.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

import aiohttp

from pyloka._clock import Clock, sleep
from pyloka._constants import POLL_INTERVAL_MS
from pyloka.exceptions import LokaError
from pyloka.models.orders import LatestOrder, PendingOrdersSnapshot

_logger = logging.getLogger(__name__)


class PendingOrdersSource(Protocol):
    async def get_pending_orders_summary(self) -> PendingOrdersSnapshot:
        ...


class DetectorState(StrEnum):
    IDLE = "idle"
    TRACKING = "tracking"


class OrderChangeDetector:
    """Turns polled snapshots into at most one event per distinct new order."""

    def __init__(
        self,
        source: PendingOrdersSource,
        *,
        clock: Clock,
        on_new_order: Callable[[LatestOrder], object],
        on_count: Callable[[int], None] | None = None,
        interval_ms: float = POLL_INTERVAL_MS,
    ) -> None:
        self._source = source
        self._clock = clock
        self._on_new_order = on_new_order
        self._on_count = on_count
        self._interval_ms = interval_ms
        self._state = DetectorState.IDLE
        self._baseline_id: int | None = None
        self._pending_count = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> DetectorState:
        return self._state

    @property
    def baseline_id(self) -> int | None:
        return self._baseline_id

    @property
    def pending_count(self) -> int:
        """Pending-order count from the last successful poll (badge value)."""
        return self._pending_count

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> LatestOrder | None:
        """Poll once; returns the order an event fired for, if any."""
        try:
            snapshot = await self._source.get_pending_orders_summary()
        except (LokaError, aiohttp.ClientError, TimeoutError) as exc:
            _logger.warning("Pending orders poll failed: %s", exc)
            return None

        self._update_count(snapshot.count)

        latest = snapshot.latest_order
        if latest is None:
            return None

        if self._state is DetectorState.IDLE:
            self._baseline_id = latest.id
            self._state = DetectorState.TRACKING
            _logger.debug("Baseline set to order %s", latest.id)
            return None

        if latest.id == self._baseline_id:
            return None

        _logger.info("New order detected: id=%s customer=%s", latest.id, latest.customer_name)
        try:
            self._on_new_order(latest)
        except Exception:
            _logger.warning("on_new_order callback failed for order %s", latest.id, exc_info=True)
        self._baseline_id = latest.id
        return latest

    def start(self) -> None:
        """Poll immediately, then every interval, until :meth:`stop`."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                _logger.exception("Unexpected error while polling pending orders")
            await sleep(self._clock, self._interval_ms)

    def _update_count(self, count: int) -> None:
        self._pending_count = max(0, count)
        if self._on_count is None:
            return
        try:
            self._on_count(self._pending_count)
        except Exception:
            _logger.warning("on_count callback failed", exc_info=True)
