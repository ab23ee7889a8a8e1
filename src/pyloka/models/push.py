"""Web-push subscription models."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from pydantic import Field, field_validator

from pyloka.models._base import LokaBaseModel


class PushSubscriptionKeys(LokaBaseModel):
    p256dh: str
    auth: str


class PushSubscription(LokaBaseModel):
    """A push-manager subscription as registered with the backend."""

    endpoint: str
    expiration_time: float | None = None
    keys: PushSubscriptionKeys

    @field_validator("endpoint")
    @classmethod
    def _require_endpoint(cls, value: str) -> str:
        endpoint = value.strip()
        if not endpoint:
            raise ValueError("endpoint must be non-empty")
        return endpoint

    def to_payload(self) -> dict[str, Any]:
        """Body for ``POST /push/subscribe`` (browser ``toJSON()`` shape)."""
        return {
            "endpoint": self.endpoint,
            "expirationTime": self.expiration_time,
            "keys": {"p256dh": self.keys.p256dh, "auth": self.keys.auth},
        }


class PushPublicKey(LokaBaseModel):
    public_key: str | None = Field(default=None)


def decode_application_server_key(public_key: str) -> bytes:
    """Decode a base64url VAPID public key (padding optional) to raw bytes.

    Raises :class:`ValueError` for keys that are not valid base64url.
    """
    text = public_key.strip()
    if not text:
        raise ValueError("public key is empty")
    padding = "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text + padding, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"public key is not valid base64url: {exc}") from exc
