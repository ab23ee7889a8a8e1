"""Masking for request/response bodies in trace logs.

With ``api_trace_enabled`` the transport logs every JSON body it sends and
receives.  Those bodies carry the admin bearer token and, on the push
endpoints, the subscription endpoint URL and its ``p256dh``/``auth`` keys,
any of which lets a third party deliver pushes to the device.
:func:`redact_for_log` walks a body and masks those values.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

MASK = "<redacted>"

# Compared after lowercasing and dropping underscores, so ``publicKey``,
# ``public_key`` and ``PUBLICKEY`` all match.
_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "token",
        "accesstoken",
        "cookie",
        "endpoint",
        "p256dh",
        "auth",
        "publickey",
        "privatekey",
    }
)

_MAX_DEPTH = 20


def is_secret_key(key: object) -> bool:
    return str(key).lower().replace("_", "") in _SECRET_KEYS


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Copy of *value* with secret fields masked and long strings clipped.

    Scalars pass through, ``bytes`` become a length marker, and anything
    that is not JSON-shaped is logged by ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _clip(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    def _walk(child: Any) -> Any:
        return redact_for_log(child, max_string=max_string, _depth=_depth + 1)

    if isinstance(value, Mapping):
        return {str(key): MASK if is_secret_key(key) else _walk(child) for key, child in value.items()}
    if isinstance(value, Sequence):
        return [_walk(child) for child in value]
    return repr(value)
