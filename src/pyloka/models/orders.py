"""Pending-orders summary returned by the admin polling endpoint."""

from __future__ import annotations

import math
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pyloka.models._base import LokaBaseModel, LokaTimestamp


class LatestOrder(LokaBaseModel):
    """The most recent pending order, as summarised for alerting."""

    id: int
    customer_name: str = Field(
        default="",
        validation_alias=AliasChoices("customerName", "customer_name", "userName", "user_name"),
    )
    package_name: str = Field(
        default="",
        validation_alias=AliasChoices("packageName", "package_name", "paketName", "paket_name"),
    )
    created_at: LokaTimestamp = None


class PendingOrdersSnapshot(LokaBaseModel):
    """One poll of ``GET /admin/orders/pending-count``.

    Snapshots are compared only by ``latest_order.id``; ``count`` feeds
    the pending badge.
    """

    count: int = 0
    latest_order: LatestOrder | None = None

    @field_validator("count", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0
        if math.isnan(number) or number <= 0:
            return 0
        return int(number)

    @property
    def latest_order_id(self) -> int | None:
        return self.latest_order.id if self.latest_order is not None else None
