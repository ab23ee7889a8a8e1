"""Funnel analytics hook.

Components report onboarding funnel steps through a ``track_event``
callable.  The default implementation just logs; hosts may pass their
own to forward events to an analytics backend.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

_logger = logging.getLogger("pyloka.analytics")

TrackEvent = Callable[[str, Mapping[str, Any] | None], None]


def log_event(name: str, data: Mapping[str, Any] | None = None) -> None:
    """Default :data:`TrackEvent`: log the event at INFO level."""
    if not name:
        return
    payload = dict(data) if data else None
    _logger.info("[Analytics] %s %s", name, payload)
