"""Per-item notification lifecycle.

Each displayed item owns its auto-dismiss timer.  Nothing outside the
item may start, reset or cancel that timer; the owning stack only learns
that the item is closing through the ``on_close`` callback.

States::

    NEW ──start──► ACTIVE_TIMED ◄──hover_end── PAUSED
     │                 │   └──────hover_start────►┘
     │                 └──timeout / close──► CLOSING
     └──start (persistent)──► ACTIVE_UNTIMED ──close──► CLOSING

Hover-end restarts the full window rather than resuming the remainder.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from pyloka._clock import Clock, TimerHandle
from pyloka._constants import AUTO_DISMISS_MS
from pyloka.models.notification import NotificationItem

_logger = logging.getLogger(__name__)


class LifecycleState(StrEnum):
    NEW = "new"
    ACTIVE_TIMED = "active_timed"
    PAUSED = "paused"
    ACTIVE_UNTIMED = "active_untimed"
    CLOSING = "closing"


class NotificationLifecycle:
    """Auto-dismiss, hover pause/resume and manual close for one item."""

    def __init__(
        self,
        item: NotificationItem,
        *,
        clock: Clock,
        on_close: Callable[[int], None],
        auto_dismiss_ms: float = AUTO_DISMISS_MS,
    ) -> None:
        self._item = item
        self._clock = clock
        self._on_close = on_close
        self._auto_dismiss_ms = auto_dismiss_ms
        self._state = LifecycleState.NEW
        self._timer: TimerHandle | None = None
        self._hovered = False

    @property
    def item(self) -> NotificationItem:
        return self._item

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def hovered(self) -> bool:
        return self._hovered

    @property
    def has_timer(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def closed(self) -> bool:
        return self._state is LifecycleState.CLOSING

    def start(self) -> None:
        """Enter the active state; called once when the item is first shown."""
        if self._state is not LifecycleState.NEW:
            return
        if self._item.is_persistent:
            self._state = LifecycleState.ACTIVE_UNTIMED
            return
        self._state = LifecycleState.ACTIVE_TIMED
        self._arm()

    def hover_start(self) -> None:
        if self._state in (LifecycleState.NEW, LifecycleState.CLOSING):
            return
        self._hovered = True
        if self._state is LifecycleState.ACTIVE_TIMED:
            self._disarm()
            self._state = LifecycleState.PAUSED

    def hover_end(self) -> None:
        if not self._hovered:
            return
        self._hovered = False
        if self._state is LifecycleState.PAUSED:
            self._state = LifecycleState.ACTIVE_TIMED
            self._arm()

    def close(self) -> None:
        """Manual dismissal by the user."""
        self._finish("manual")

    def dispose(self) -> None:
        """Teardown without notifying the owner (the owner is going away)."""
        self._disarm()
        self._state = LifecycleState.CLOSING

    def _arm(self) -> None:
        # At most one outstanding timer per item.
        self._disarm()
        self._timer = self._clock.schedule(self._auto_dismiss_ms, self._expire)

    def _disarm(self) -> None:
        if self._timer is not None:
            self._clock.cancel(self._timer)
            self._timer = None

    def _expire(self) -> None:
        self._timer = None
        if self._state is LifecycleState.ACTIVE_TIMED and not self._hovered:
            self._finish("timeout")

    def _finish(self, reason: str) -> None:
        if self._state is LifecycleState.CLOSING:
            return
        self._disarm()
        self._state = LifecycleState.CLOSING
        _logger.debug("Notification %s closing (%s)", self._item.id, reason)
        self._on_close(self._item.id)
