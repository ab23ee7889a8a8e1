"""Admin order endpoints.

Endpoints:
  - /admin/orders/pending-count  (pending count + latest pending order)
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pyloka._api._common import unwrap_envelope
from pyloka._constants import PENDING_ORDERS_ENDPOINT
from pyloka._transport import Transport
from pyloka.exceptions import LokaApiError
from pyloka.models.orders import PendingOrdersSnapshot

_logger = logging.getLogger(__name__)


async def fetch_pending_orders_summary(transport: Transport) -> PendingOrdersSnapshot:
    """Fetch the pending-orders summary used for new-order detection."""
    response = await transport.get_json(PENDING_ORDERS_ENDPOINT)
    data = unwrap_envelope(response, PENDING_ORDERS_ENDPOINT)
    try:
        snapshot = PendingOrdersSnapshot.model_validate(data)
    except ValidationError as exc:
        raise LokaApiError(
            f"{PENDING_ORDERS_ENDPOINT} returned an unexpected payload: {exc.error_count()} error(s)",
            endpoint=PENDING_ORDERS_ENDPOINT,
        ) from exc
    _logger.debug("Pending orders count=%s latest=%s", snapshot.count, snapshot.latest_order_id)
    return snapshot
