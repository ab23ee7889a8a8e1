"""High-level async client for the LocaClean REST backend."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pyloka._api import orders as _orders_api
from pyloka._api import push as _push_api
from pyloka._transport import HttpTransport, Transport
from pyloka.config import LokaConfig
from pyloka.exceptions import LokaError
from pyloka.models.orders import PendingOrdersSnapshot
from pyloka.models.push import PushSubscription

_logger = logging.getLogger(__name__)


class LokaClient:
    """Async client for the endpoints the engagement subsystem consumes.

    Usage::

        async with LokaClient(config) as client:
            snapshot = await client.get_pending_orders_summary()
    """

    def __init__(
        self,
        config: LokaConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    @property
    def config(self) -> LokaConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LokaClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise LokaError("Client not initialized. Use 'async with LokaClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def get_pending_orders_summary(self) -> PendingOrdersSnapshot:
        """Fetch the pending-order count and the latest pending order."""
        return await _orders_api.fetch_pending_orders_summary(self._require_transport())

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def get_push_public_key(self) -> str | None:
        """Fetch the server's push public key (``None`` when unset)."""
        return await _push_api.fetch_public_key(self._require_transport())

    async def subscribe_push(self, subscription: PushSubscription) -> None:
        """Register a push subscription for the authenticated user."""
        await _push_api.register_subscription(self._require_transport(), subscription)
        _logger.debug("Push subscription registered")

    async def unsubscribe_push(self, endpoint: str) -> None:
        """Remove a previously registered push subscription."""
        await _push_api.unregister_subscription(self._require_transport(), endpoint)
        _logger.debug("Push subscription removed")
