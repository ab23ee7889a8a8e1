"""pyloka - Async engagement and notification subsystem for the LocaClean backend."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyloka")
except PackageNotFoundError:
    __version__ = "0+local"
from pyloka._clock import Clock, LoopClock, ManualClock, TimerHandle
from pyloka.alerts import AlertSequencer, DetectorState, OrderChangeDetector
from pyloka.client import LokaClient
from pyloka.config import LokaConfig
from pyloka.exceptions import (
    LokaApiError,
    LokaAuthenticationError,
    LokaCapabilityError,
    LokaConfigError,
    LokaError,
    LokaTransportError,
    PlaybackError,
    PushError,
    SpeechError,
)
from pyloka.models import (
    InstallOutcome,
    LatestOrder,
    NotificationItem,
    OnboardingRecord,
    OnboardingState,
    PendingOrdersSnapshot,
    PermissionStatus,
    PlatformClassification,
    PushSubscription,
)
from pyloka.notifications import LifecycleState, NotificationLifecycle, NotificationStack
from pyloka.onboarding import (
    InstallPromptMachine,
    InstallState,
    PushOnboardingMachine,
    PushPromptState,
    classify_platform,
    ensure_push_subscription,
)
from pyloka.ports import NoSpeech, NullAudio, Result
from pyloka.runtime import EngagementRuntime
from pyloka.signals import PlatformSignal, SignalHub
from pyloka.state.store import JsonFileStore, MemoryStore, OnboardingStore

__all__ = [
    "__version__",
    "AlertSequencer",
    "Clock",
    "DetectorState",
    "EngagementRuntime",
    "InstallOutcome",
    "InstallPromptMachine",
    "InstallState",
    "JsonFileStore",
    "LatestOrder",
    "LifecycleState",
    "LokaApiError",
    "LokaAuthenticationError",
    "LokaCapabilityError",
    "LokaClient",
    "LokaConfig",
    "LokaConfigError",
    "LokaError",
    "LokaTransportError",
    "LoopClock",
    "ManualClock",
    "MemoryStore",
    "NoSpeech",
    "NotificationItem",
    "NotificationLifecycle",
    "NotificationStack",
    "NullAudio",
    "OnboardingRecord",
    "OnboardingState",
    "OnboardingStore",
    "OrderChangeDetector",
    "PendingOrdersSnapshot",
    "PermissionStatus",
    "PlatformClassification",
    "PlatformSignal",
    "PlaybackError",
    "PushError",
    "PushOnboardingMachine",
    "PushPromptState",
    "PushSubscription",
    "Result",
    "SignalHub",
    "SpeechError",
    "TimerHandle",
    "classify_platform",
    "ensure_push_subscription",
]
