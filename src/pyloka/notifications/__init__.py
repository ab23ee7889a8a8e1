"""On-screen notification items and the stack that displays them."""

from pyloka.notifications.lifecycle import LifecycleState, NotificationLifecycle
from pyloka.notifications.stack import NotificationStack

__all__ = ["LifecycleState", "NotificationLifecycle", "NotificationStack"]
