"""Data models for the pyloka engagement subsystem."""

from pyloka.models._base import LokaBaseModel, LokaTimestamp, parse_timestamp
from pyloka.models.notification import NotificationItem
from pyloka.models.onboarding import (
    InstallOutcome,
    OnboardingRecord,
    OnboardingState,
    PermissionStatus,
    PlatformClassification,
)
from pyloka.models.orders import LatestOrder, PendingOrdersSnapshot
from pyloka.models.push import (
    PushPublicKey,
    PushSubscription,
    PushSubscriptionKeys,
    decode_application_server_key,
)

__all__ = [
    "InstallOutcome",
    "LatestOrder",
    "LokaBaseModel",
    "LokaTimestamp",
    "NotificationItem",
    "OnboardingRecord",
    "OnboardingState",
    "PendingOrdersSnapshot",
    "PermissionStatus",
    "PlatformClassification",
    "PushPublicKey",
    "PushSubscription",
    "PushSubscriptionKeys",
    "decode_application_server_key",
    "parse_timestamp",
]
