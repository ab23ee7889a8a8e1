"""Push-notification onboarding state machine.

States::

    IDLE ──app installed, permission undecided, record IDLE──► PROMPT_SCHEDULED
    PROMPT_SCHEDULED ──2200 ms──► PROMPT_SHOWN
    PROMPT_SHOWN ──accept ok──► COMPLETED
    PROMPT_SHOWN ──accept fails at any step──► DENIED
    PROMPT_SCHEDULED / PROMPT_SHOWN ──skip──► IDLE

COMPLETED and DENIED are terminal and persisted; a later session that
loads either never shows the prompt again.  Nothing moves a device out
of DENIED automatically.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

from pyloka._analytics import TrackEvent, log_event
from pyloka._clock import Clock, TimerHandle
from pyloka._constants import PUSH_ONBOARDING_STATE_KEY, PUSH_PROMPT_DELAY_MS
from pyloka.exceptions import LokaError, PushError
from pyloka.models.onboarding import OnboardingRecord, OnboardingState, PermissionStatus
from pyloka.models.push import PushSubscription, decode_application_server_key
from pyloka.ports import PermissionPort, PushPort, guard_port_call
from pyloka.signals import PlatformSignal, SignalHub
from pyloka.state.store import OnboardingStore

_logger = logging.getLogger(__name__)


class PushBackend(Protocol):
    async def get_push_public_key(self) -> str | None:
        ...

    async def subscribe_push(self, subscription: PushSubscription) -> None:
        ...


class PushPromptState(StrEnum):
    IDLE = "idle"
    PROMPT_SCHEDULED = "prompt_scheduled"
    PROMPT_SHOWN = "prompt_shown"
    COMPLETED = "completed"
    DENIED = "denied"


_PERSISTED: dict[PushPromptState, OnboardingState] = {
    PushPromptState.COMPLETED: OnboardingState.COMPLETED,
    PushPromptState.DENIED: OnboardingState.DENIED,
}


async def ensure_push_subscription(
    backend: PushBackend,
    push: PushPort,
    *,
    fallback_public_key: str | None = None,
) -> PushSubscription:
    """Make sure this device has a push subscription registered with the backend.

    Reuses an existing push-manager subscription when there is one, so
    calling this repeatedly never creates a second subscription.

    Raises
    ------
    PushError
        No service worker, no public key, or the subscribe call failed.
    LokaError
        The backend rejected the key lookup or the registration.
    """
    if not await push.service_worker_ready():
        raise PushError("service worker not available")

    public_key = await backend.get_push_public_key() or fallback_public_key
    if not public_key:
        raise PushError("no push public key from server and no local fallback")

    subscription = await push.get_subscription()
    if subscription is None:
        try:
            application_server_key = decode_application_server_key(public_key)
        except ValueError as exc:
            raise PushError(str(exc)) from exc
        result = await guard_port_call(
            lambda: push.subscribe(application_server_key),
            PushError,
            name="push.subscribe",
        )
        if not result.ok or result.value is None:
            raise result.error or PushError("push.subscribe returned no subscription")
        subscription = result.value

    await backend.subscribe_push(subscription)
    return subscription


class PushOnboardingMachine:
    """Offers push notifications once, shortly after the app is installed."""

    def __init__(
        self,
        store: OnboardingStore,
        backend: PushBackend,
        permissions: PermissionPort,
        push: PushPort,
        *,
        clock: Clock,
        fallback_public_key: str | None = None,
        on_prompt_visible: Callable[[bool], None] | None = None,
        track_event: TrackEvent = log_event,
        prompt_delay_ms: float = PUSH_PROMPT_DELAY_MS,
    ) -> None:
        self._store = store
        self._backend = backend
        self._permissions = permissions
        self._push = push
        self._clock = clock
        self._fallback_public_key = fallback_public_key
        self._on_prompt_visible = on_prompt_visible
        self._track = track_event
        self._prompt_delay_ms = prompt_delay_ms
        self._timer: TimerHandle | None = None
        self._processing = False
        self._subscription: PushSubscription | None = None

        record = store.load(PUSH_ONBOARDING_STATE_KEY)
        self._state = PushPromptState(record.state.value) if record.state.is_terminal else PushPromptState.IDLE

    @property
    def state(self) -> PushPromptState:
        return self._state

    @property
    def prompt_visible(self) -> bool:
        return self._state is PushPromptState.PROMPT_SHOWN

    @property
    def processing(self) -> bool:
        return self._processing

    @property
    def subscription(self) -> PushSubscription | None:
        """Subscription registered by the last successful :meth:`accept`."""
        return self._subscription

    def bind(self, hub: SignalHub) -> Callable[[], None]:
        return hub.subscribe(PlatformSignal.APP_INSTALLED, self.on_app_installed)

    def on_app_installed(self, _payload: object = None) -> None:
        if self._state is not PushPromptState.IDLE:
            return
        if self._permission_status() is not PermissionStatus.DEFAULT:
            return
        # Another session may have finished onboarding since this one loaded.
        if self._store.load(PUSH_ONBOARDING_STATE_KEY).state.is_terminal:
            return
        self._clock.cancel(self._timer)
        self._timer = self._clock.schedule(self._prompt_delay_ms, self._show_prompt)
        self._transition(PushPromptState.PROMPT_SCHEDULED)

    async def accept(self) -> PushPromptState:
        """User agreed: request permission, subscribe and register."""
        if self._state is not PushPromptState.PROMPT_SHOWN or self._processing:
            return self._state

        self._processing = True
        try:
            completed = await self._enable()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.warning("Push onboarding failed: %s", exc)
            completed = False
        finally:
            self._processing = False

        self._transition(PushPromptState.COMPLETED if completed else PushPromptState.DENIED)
        return self._state

    def skip(self) -> None:
        """User chose "later": hide the prompt, keep the device eligible."""
        if self._processing:
            return
        if self._state not in (PushPromptState.PROMPT_SCHEDULED, PushPromptState.PROMPT_SHOWN):
            return
        self._clock.cancel(self._timer)
        self._timer = None
        # The stored record is already IDLE; "later" leaves it untouched.
        self._transition(PushPromptState.IDLE, persist=False)

    def close(self) -> None:
        """Teardown: drop a pending prompt timer."""
        self._clock.cancel(self._timer)
        self._timer = None

    async def _enable(self) -> bool:
        self._track("push_permission_requested", None)
        permission = await self._permissions.request_permission()
        if permission is not PermissionStatus.GRANTED:
            self._track("push_permission_denied", None)
            return False
        self._track("push_permission_granted", None)

        try:
            self._subscription = await ensure_push_subscription(
                self._backend,
                self._push,
                fallback_public_key=self._fallback_public_key,
            )
        except (PushError, LokaError) as exc:
            _logger.warning("Push subscription could not be completed: %s", exc)
            return False

        self._track("welcome_notification_sent", None)
        return True

    def _show_prompt(self) -> None:
        self._timer = None
        if self._state is PushPromptState.PROMPT_SCHEDULED:
            self._transition(PushPromptState.PROMPT_SHOWN)

    def _permission_status(self) -> PermissionStatus:
        try:
            return self._permissions.permission_status()
        except Exception:
            _logger.debug("permissions.permission_status raised", exc_info=True)
            return PermissionStatus.DENIED

    def _transition(self, new_state: PushPromptState, *, persist: bool = True) -> None:
        if new_state is self._state:
            return
        was_visible = self.prompt_visible
        _logger.info("Push onboarding: %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        if persist:
            persisted = _PERSISTED.get(new_state, OnboardingState.IDLE)
            self._store.save(PUSH_ONBOARDING_STATE_KEY, OnboardingRecord(state=persisted))
        if self._on_prompt_visible is not None and was_visible != self.prompt_visible:
            try:
                self._on_prompt_visible(self.prompt_visible)
            except Exception:
                _logger.warning("on_prompt_visible callback failed", exc_info=True)
