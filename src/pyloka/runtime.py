"""Wiring for the whole engagement subsystem.

:class:`EngagementRuntime` connects the order detector, the alert
sequencer, the notification stack and both onboarding machines to one
clock and one signal hub.  Hosts feed platform events in through
:attr:`EngagementRuntime.hub` and read state back from the components.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pyloka._analytics import TrackEvent, log_event
from pyloka._clock import Clock, LoopClock
from pyloka.alerts.detector import OrderChangeDetector
from pyloka.alerts.sequencer import AlertSequencer
from pyloka.client import LokaClient
from pyloka.models.notification import NotificationItem
from pyloka.notifications.stack import NotificationStack
from pyloka.onboarding.install import InstallPromptMachine
from pyloka.onboarding.platform import classify_platform
from pyloka.onboarding.push import PushOnboardingMachine
from pyloka.ports import AudioPort, DisplayModePort, PermissionPort, PushPort, SpeechPort
from pyloka.signals import SignalHub
from pyloka.state.store import KeyValueStore, OnboardingStore, open_store

_logger = logging.getLogger(__name__)


class EngagementRuntime:
    """All engagement components for one session, sharing a clock and hub.

    Usage::

        async with LokaClient(config) as client:
            async with EngagementRuntime(client, audio=..., speech=...,
                                         permissions=..., push=...) as runtime:
                runtime.hub.emit(PlatformSignal.APP_INSTALLED)
                ...
    """

    def __init__(
        self,
        client: LokaClient,
        *,
        audio: AudioPort,
        speech: SpeechPort,
        permissions: PermissionPort,
        push: PushPort,
        store: KeyValueStore | None = None,
        user_agent: str = "",
        display_mode: DisplayModePort | None = None,
        clock: Clock | None = None,
        hub: SignalHub | None = None,
        track_event: TrackEvent = log_event,
        on_notifications_change: Callable[[list[NotificationItem]], None] | None = None,
        on_pending_count: Callable[[int], None] | None = None,
        on_push_prompt_visible: Callable[[bool], None] | None = None,
    ) -> None:
        config = client.config
        self.clock: Clock = clock if clock is not None else LoopClock()
        self.hub = hub if hub is not None else SignalHub()
        onboarding_store = OnboardingStore(store if store is not None else open_store(config.state_path))

        self.stack = NotificationStack(clock=self.clock, on_change=on_notifications_change)
        self.sequencer = AlertSequencer(
            self.stack,
            audio,
            speech,
            clock=self.clock,
            locale=config.locale,
        )
        self.detector = OrderChangeDetector(
            client,
            clock=self.clock,
            on_new_order=self.sequencer.handle,
            on_count=on_pending_count,
        )
        self.install = InstallPromptMachine(
            onboarding_store,
            platform=classify_platform(user_agent),
            display_mode=display_mode,
            track_event=track_event,
        )
        self.push_onboarding = PushOnboardingMachine(
            onboarding_store,
            client,
            permissions,
            push,
            clock=self.clock,
            fallback_public_key=config.vapid_public_key,
            on_prompt_visible=on_push_prompt_visible,
            track_event=track_event,
        )
        self._unbinders: list[Callable[[], None]] = []

    async def __aenter__(self) -> EngagementRuntime:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def start(self, *, poll_orders: bool = True) -> None:
        """Subscribe the onboarding machines and (optionally) start polling."""
        if not self._unbinders:
            self._unbinders.append(self.install.bind(self.hub))
            self._unbinders.append(self.push_onboarding.bind(self.hub))
        if poll_orders:
            self.detector.start()

    async def aclose(self) -> None:
        """Stop polling, cancel in-flight alerts and drop every timer."""
        await self.detector.stop()
        await self.sequencer.aclose()
        self.push_onboarding.close()
        self.stack.clear()
        for unbind in self._unbinders:
            unbind()
        self._unbinders.clear()
        _logger.debug("Engagement runtime closed")
