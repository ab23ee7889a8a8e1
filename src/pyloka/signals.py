"""Explicit platform event subscription.

Platform lifecycle signals (an install prompt became available, the app
got installed) are delivered through a :class:`SignalHub` rather than
ambient global listeners, so state machines can be driven by synthetic
events in tests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

_logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class PlatformSignal(StrEnum):
    INSTALL_PROMPT_CAPTURED = "install_prompt_captured"
    """Payload: a :class:`~pyloka.ports.DeferredInstallCapture` token."""

    APP_INSTALLED = "app_installed"
    """Payload: ``None``."""


class SignalHub:
    """Synchronous fan-out of platform signals to subscribed handlers."""

    def __init__(self) -> None:
        self._handlers: dict[PlatformSignal, list[Handler]] = {}

    def subscribe(self, signal: PlatformSignal, handler: Handler) -> Callable[[], None]:
        """Register *handler*; returns a callable that unsubscribes it."""
        self._handlers.setdefault(signal, []).append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(signal)
            if handlers is None:
                return
            self._handlers[signal] = [h for h in handlers if h is not handler]
            if not self._handlers[signal]:
                self._handlers.pop(signal, None)

        return _unsubscribe

    def emit(self, signal: PlatformSignal, payload: Any = None) -> None:
        """Deliver *payload* to every handler of *signal*, in subscription order."""
        for handler in list(self._handlers.get(signal, ())):
            try:
                handler(payload)
            except Exception:
                _logger.warning("Handler for %s failed", signal.value, exc_info=True)

    def handler_count(self, signal: PlatformSignal) -> int:
        return len(self._handlers.get(signal, ()))
