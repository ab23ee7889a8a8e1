"""Ordered, capped collection of displayed notifications."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from pyloka._clock import Clock
from pyloka._constants import AUTO_DISMISS_MS, MAX_VISIBLE_NOTIFICATIONS
from pyloka.models.notification import NotificationItem
from pyloka.notifications.lifecycle import NotificationLifecycle

_logger = logging.getLogger(__name__)

# Closed ids remembered per stack; older ones are forgotten first.
_DISMISSED_HISTORY = 256


class NotificationStack:
    """Holds notification items in arrival order and shows the oldest few.

    The stack decides which items are visible and removes an item once
    it reports closing.  Timers belong to each item's
    :class:`NotificationLifecycle`; the stack starts a lifecycle when its
    item first becomes visible and never touches the timer afterwards.

    The most recent closed ids (up to *dismissed_history*) are
    remembered, so an item the user dismissed is not shown again when a
    producer pushes it a second time.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        max_visible: int = MAX_VISIBLE_NOTIFICATIONS,
        auto_dismiss_ms: float = AUTO_DISMISS_MS,
        on_change: Callable[[list[NotificationItem]], None] | None = None,
        dismissed_history: int = _DISMISSED_HISTORY,
    ) -> None:
        if max_visible < 1:
            raise ValueError(f"max_visible must be >= 1, got {max_visible}")
        if dismissed_history < 1:
            raise ValueError(f"dismissed_history must be >= 1, got {dismissed_history}")
        self._clock = clock
        self._max_visible = max_visible
        self._auto_dismiss_ms = auto_dismiss_ms
        self._on_change = on_change
        self._entries: list[NotificationLifecycle] = []
        self._dismissed: set[int] = set()
        self._dismissed_order: deque[int] = deque()
        self._dismissed_history = dismissed_history
        self._last_visible: list[int] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item_id: object) -> bool:
        return any(entry.item.id == item_id for entry in self._entries)

    @property
    def visible(self) -> list[NotificationItem]:
        return [entry.item for entry in self._entries[: self._max_visible]]

    @property
    def queued(self) -> list[NotificationItem]:
        return [entry.item for entry in self._entries[self._max_visible :]]

    def get(self, item_id: int) -> NotificationLifecycle | None:
        for entry in self._entries:
            if entry.item.id == item_id:
                return entry
        return None

    def push(self, item: NotificationItem) -> bool:
        """Add *item*; returns ``False`` if it is already shown or was dismissed."""
        if item.id in self._dismissed or item.id in self:
            _logger.debug("Ignoring notification %s (duplicate or dismissed)", item.id)
            return False
        self._entries.append(
            NotificationLifecycle(
                item,
                clock=self._clock,
                on_close=self._handle_close,
                auto_dismiss_ms=self._auto_dismiss_ms,
            )
        )
        self._sync()
        return True

    def hover_start(self, item_id: int) -> None:
        entry = self.get(item_id)
        if entry is not None:
            entry.hover_start()

    def hover_end(self, item_id: int) -> None:
        entry = self.get(item_id)
        if entry is not None:
            entry.hover_end()

    def close(self, item_id: int) -> None:
        entry = self.get(item_id)
        if entry is not None:
            entry.close()

    def clear(self) -> None:
        """Tear down every item (e.g. when the host view goes away)."""
        for entry in self._entries:
            entry.dispose()
        self._entries.clear()
        self._sync()

    def _handle_close(self, item_id: int) -> None:
        self._remember_dismissed(item_id)
        self._entries = [entry for entry in self._entries if entry.item.id != item_id]
        self._sync()

    def _remember_dismissed(self, item_id: int) -> None:
        if item_id in self._dismissed:
            return
        self._dismissed.add(item_id)
        self._dismissed_order.append(item_id)
        while len(self._dismissed_order) > self._dismissed_history:
            self._dismissed.discard(self._dismissed_order.popleft())

    def _sync(self) -> None:
        for entry in self._entries[: self._max_visible]:
            entry.start()
        visible_ids = [entry.item.id for entry in self._entries[: self._max_visible]]
        if visible_ids == self._last_visible:
            return
        self._last_visible = visible_ids
        if self._on_change is not None:
            try:
                self._on_change(self.visible)
            except Exception:
                _logger.warning("on_change callback failed", exc_info=True)
