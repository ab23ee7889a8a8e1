"""Shared helpers for endpoint modules.

The backend wraps every success in ``{"ok": true, "data": {...}}``.
This module unwraps that envelope and maps malformed bodies to
:class:`~pyloka.exceptions.LokaApiError`.

It is internal to pyloka and may change at any time.
"""

from __future__ import annotations

from typing import Any

from pyloka.exceptions import LokaApiError


def unwrap_envelope(response: dict[str, Any], endpoint: str) -> dict[str, Any]:
    """Return the ``data`` object of a backend envelope."""
    if response.get("ok") is False:
        message = response.get("message") or response.get("error") or "request rejected"
        raise LokaApiError(f"{endpoint} failed: {message}", endpoint=endpoint)

    data = response.get("data")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise LokaApiError(
            f"{endpoint} returned non-object data: {type(data).__name__}",
            endpoint=endpoint,
        )
    return data
