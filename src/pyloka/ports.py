"""Capability ports: the only seams where pyloka touches platform features.

Each port reports success or failure through a :class:`Result` instead of
raising.  Hosts plug in real implementations (a browser bridge, a desktop
audio stack, a test double); the components in :mod:`pyloka.alerts`,
:mod:`pyloka.notifications` and :mod:`pyloka.onboarding` only see these
protocols.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from pyloka.exceptions import LokaCapabilityError, SpeechError
from pyloka.models.onboarding import InstallOutcome, PermissionStatus
from pyloka.models.push import PushSubscription

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Outcome of a capability call."""

    ok: bool
    value: T | None = None
    error: LokaCapabilityError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: LokaCapabilityError) -> Result[T]:
        return cls(ok=False, error=error)


class AudioPort(Protocol):
    async def play_alert_sound(self) -> Result[None]:
        ...


class SpeechPort(Protocol):
    def is_available(self) -> bool:
        """Whether speech synthesis exists on this host at all."""
        ...

    async def speak(self, text: str, locale: str) -> Result[None]:
        ...


class PermissionPort(Protocol):
    def permission_status(self) -> PermissionStatus:
        ...

    async def request_permission(self) -> PermissionStatus:
        ...


class PushPort(Protocol):
    async def service_worker_ready(self) -> bool:
        """Wait for the service worker; ``False`` when the host has none."""
        ...

    async def get_subscription(self) -> PushSubscription | None:
        ...

    async def subscribe(self, application_server_key: bytes) -> Result[PushSubscription]:
        ...


class DeferredInstallCapture(Protocol):
    """Single-use token for the platform's native install affordance."""

    async def prompt(self) -> InstallOutcome:
        ...


class DisplayModePort(Protocol):
    def is_standalone(self) -> bool:
        """Whether the app already runs as an installed (standalone) app."""
        ...


class NullAudio:
    """Audio port for hosts without sound output; always succeeds silently."""

    async def play_alert_sound(self) -> Result[None]:
        _logger.debug("Alert sound requested on a host without audio output")
        return Result.success()


class NoSpeech:
    """Speech port for hosts without speech synthesis."""

    def is_available(self) -> bool:
        return False

    async def speak(self, text: str, locale: str) -> Result[None]:  # pragma: no cover - never reached
        return Result.failure(SpeechError("speech synthesis not available"))


class BrowserDisplayMode:
    """Display-mode port answering from a fixed flag supplied by the host."""

    def __init__(self, standalone: bool = False) -> None:
        self._standalone = standalone

    def is_standalone(self) -> bool:
        return self._standalone


async def guard_port_call(
    call: Callable[[], Awaitable[Result[T]]],
    error_type: type[LokaCapabilityError],
    *,
    name: str,
) -> Result[T]:
    """Await a port call, turning a stray exception into a failed result.

    Ports are not supposed to raise, but a host implementation that does
    must not take down the component driving it.
    """
    try:
        return await call()
    except Exception as exc:
        _logger.warning("%s raised instead of reporting failure: %s", name, exc, exc_info=True)
        return Result.failure(error_type(f"{name} raised: {exc}"))
