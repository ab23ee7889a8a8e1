"""Web-push endpoints.

Endpoints:
  - /push/public-key   (VAPID public key, may be absent)
  - /push/subscribe    (register a subscription)
  - /push/unsubscribe  (drop a subscription by endpoint)
"""

from __future__ import annotations

import logging

from pyloka._api._common import unwrap_envelope
from pyloka._constants import (
    PUSH_PUBLIC_KEY_ENDPOINT,
    PUSH_SUBSCRIBE_ENDPOINT,
    PUSH_UNSUBSCRIBE_ENDPOINT,
)
from pyloka._transport import Transport
from pyloka.models.push import PushPublicKey, PushSubscription

_logger = logging.getLogger(__name__)


async def fetch_public_key(transport: Transport) -> str | None:
    """Return the server's push public key, or ``None`` when it has none."""
    response = await transport.get_json(PUSH_PUBLIC_KEY_ENDPOINT)
    data = unwrap_envelope(response, PUSH_PUBLIC_KEY_ENDPOINT)
    key = PushPublicKey.model_validate(data).public_key
    _logger.debug("Push public key present=%s", key is not None)
    return key


async def register_subscription(transport: Transport, subscription: PushSubscription) -> None:
    """Register *subscription* with the backend (upsert by endpoint)."""
    response = await transport.post_json(PUSH_SUBSCRIBE_ENDPOINT, subscription.to_payload())
    unwrap_envelope(response, PUSH_SUBSCRIBE_ENDPOINT)


async def unregister_subscription(transport: Transport, endpoint: str) -> None:
    """Remove the subscription identified by *endpoint*."""
    response = await transport.post_json(PUSH_UNSUBSCRIBE_ENDPOINT, {"endpoint": endpoint})
    unwrap_envelope(response, PUSH_UNSUBSCRIBE_ENDPOINT)
