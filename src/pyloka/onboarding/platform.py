"""User-agent based platform classification.

Computed once per session; only ``android-chrome`` supports a
programmatic install prompt, while ``ios-safari`` gets manual
"add to home screen" instructions instead.
"""

from __future__ import annotations

import re

from pyloka.models.onboarding import PlatformClassification

_IOS_DEVICE = re.compile(r"iPad|iPhone|iPod")
_SAFARI = re.compile(r"Safari")
_NOT_SAFARI = re.compile(r"CriOS|FxiOS|Edg")
_ANDROID = re.compile(r"Android")
_CHROME = re.compile(r"Chrome")
_NOT_CHROME = re.compile(r"Edg|OPR")


def classify_platform(user_agent: str | None) -> PlatformClassification:
    ua = user_agent or ""
    if not ua.strip():
        return PlatformClassification.UNKNOWN

    is_ios = bool(_IOS_DEVICE.search(ua))
    is_safari = bool(_SAFARI.search(ua)) and not _NOT_SAFARI.search(ua)
    is_android = bool(_ANDROID.search(ua))
    is_chrome = bool(_CHROME.search(ua)) and not _NOT_CHROME.search(ua)

    if is_ios and is_safari:
        return PlatformClassification.IOS_SAFARI
    if is_android and is_chrome:
        return PlatformClassification.ANDROID_CHROME
    if not is_android and not is_ios:
        return PlatformClassification.DESKTOP
    return PlatformClassification.UNKNOWN
