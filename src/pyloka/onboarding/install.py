"""Install-prompt state machine.

States::

    INELIGIBLE ──token + android-chrome + not installed──► ELIGIBLE
    ELIGIBLE ──(first time this session, automatic)──► BANNER_SHOWN
    BANNER_SHOWN ──request_install / dismiss──► RESOLVED
    any ──app installed──► INSTALLED (persisted)

The capture token is single-use: :meth:`InstallPromptMachine.request_install`
consumes it whatever the user picks in the native dialog, and only a new
token from the platform makes the machine eligible again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from pyloka._analytics import TrackEvent, log_event
from pyloka._constants import INSTALL_STATE_KEY
from pyloka.models.onboarding import (
    InstallOutcome,
    OnboardingRecord,
    OnboardingState,
    PlatformClassification,
)
from pyloka.ports import DeferredInstallCapture, DisplayModePort
from pyloka.signals import PlatformSignal, SignalHub
from pyloka.state.store import OnboardingStore

_logger = logging.getLogger(__name__)


class InstallState(StrEnum):
    INELIGIBLE = "ineligible"
    ELIGIBLE = "eligible"
    BANNER_SHOWN = "banner_shown"
    RESOLVED = "resolved"
    INSTALLED = "installed"


class InstallPromptMachine:
    """Decides when to show the "install this app" banner."""

    def __init__(
        self,
        store: OnboardingStore,
        *,
        platform: PlatformClassification,
        display_mode: DisplayModePort | None = None,
        track_event: TrackEvent = log_event,
    ) -> None:
        self._store = store
        self._platform = platform
        self._display_mode = display_mode
        self._track = track_event
        self._token: DeferredInstallCapture | None = None
        self._banner_offered = False

        installed = store.load(INSTALL_STATE_KEY).state is OnboardingState.COMPLETED
        if not installed and self._is_standalone():
            installed = True
            self._persist_installed()
        self._state = InstallState.INSTALLED if installed else InstallState.INELIGIBLE

    @property
    def state(self) -> InstallState:
        return self._state

    @property
    def platform(self) -> PlatformClassification:
        return self._platform

    @property
    def installed(self) -> bool:
        return self._state is InstallState.INSTALLED

    @property
    def banner_visible(self) -> bool:
        return self._state is InstallState.BANNER_SHOWN

    @property
    def has_capture(self) -> bool:
        return self._token is not None

    @property
    def is_installable(self) -> bool:
        return (
            self._token is not None
            and not self.installed
            and self._platform is PlatformClassification.ANDROID_CHROME
        )

    @property
    def should_show_ios_instructions(self) -> bool:
        """iOS Safari has no install prompt; hosts show manual steps instead."""
        return self._platform is PlatformClassification.IOS_SAFARI and not self.installed

    def bind(self, hub: SignalHub) -> Callable[[], None]:
        """Subscribe to platform signals; returns a callable that unsubscribes."""
        unsubscribers = [
            hub.subscribe(PlatformSignal.INSTALL_PROMPT_CAPTURED, self.on_install_prompt_captured),
            hub.subscribe(PlatformSignal.APP_INSTALLED, self.on_app_installed),
        ]

        def _unbind() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return _unbind

    def on_install_prompt_captured(self, token: DeferredInstallCapture) -> None:
        if self.installed:
            return
        self._token = token
        if not self.is_installable:
            return
        if self._state in (InstallState.INELIGIBLE, InstallState.RESOLVED):
            self._transition(InstallState.ELIGIBLE)
        if self._state is InstallState.ELIGIBLE and not self._banner_offered:
            self._banner_offered = True
            self._transition(InstallState.BANNER_SHOWN)
            self._track("install_banner_shown", None)

    def on_app_installed(self, _payload: object = None) -> None:
        self._token = None
        if self.installed:
            return
        self._persist_installed()
        self._transition(InstallState.INSTALLED)
        self._track("install_accepted", None)

    async def request_install(self) -> InstallOutcome | None:
        """Show the native install dialog.

        Returns the user's choice, or ``None`` when no capture token is
        available.
        """
        token = self._token
        if token is None:
            if self._is_standalone():
                self._track("install_already_installed", None)
            return None

        self._track("install_clicked", None)
        self._token = None
        try:
            outcome = await token.prompt()
        except Exception:
            _logger.warning("Install prompt failed", exc_info=True)
            outcome = InstallOutcome.DISMISSED

        if outcome is not InstallOutcome.ACCEPTED:
            self._track("install_dismissed", None)
        if not self.installed:
            self._transition(InstallState.RESOLVED)
        return outcome

    def dismiss(self) -> None:
        """User closed the banner without installing."""
        if self._state is not InstallState.BANNER_SHOWN:
            return
        self._transition(InstallState.RESOLVED)
        self._track("install_dismissed", None)

    def _is_standalone(self) -> bool:
        if self._display_mode is None:
            return False
        try:
            return bool(self._display_mode.is_standalone())
        except Exception:
            _logger.debug("display_mode.is_standalone raised", exc_info=True)
            return False

    def _persist_installed(self) -> None:
        self._store.save(INSTALL_STATE_KEY, OnboardingRecord(state=OnboardingState.COMPLETED))

    def _transition(self, new_state: InstallState) -> None:
        if new_state is self._state:
            return
        _logger.info("Install prompt: %s -> %s", self._state.value, new_state.value)
        self._state = new_state
