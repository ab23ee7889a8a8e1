"""Cross-session onboarding prompts: app install and push notifications."""

from pyloka.onboarding.install import InstallPromptMachine, InstallState
from pyloka.onboarding.platform import classify_platform
from pyloka.onboarding.push import PushOnboardingMachine, PushPromptState, ensure_push_subscription

__all__ = [
    "InstallPromptMachine",
    "InstallState",
    "PushOnboardingMachine",
    "PushPromptState",
    "classify_platform",
    "ensure_push_subscription",
]
