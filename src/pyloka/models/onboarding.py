"""Onboarding records and platform-facing enums."""

from __future__ import annotations

from enum import StrEnum

from pyloka.models._base import LokaBaseModel


class OnboardingState(StrEnum):
    """Persisted per-device onboarding state, one record per machine."""

    IDLE = "idle"
    COMPLETED = "completed"
    DENIED = "denied"

    @property
    def is_terminal(self) -> bool:
        return self is not OnboardingState.IDLE


class OnboardingRecord(LokaBaseModel):
    state: OnboardingState = OnboardingState.IDLE


class PlatformClassification(StrEnum):
    ANDROID_CHROME = "android-chrome"
    IOS_SAFARI = "ios-safari"
    DESKTOP = "desktop"
    UNKNOWN = "unknown"


class PermissionStatus(StrEnum):
    """Notification permission as reported by the platform."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class InstallOutcome(StrEnum):
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
