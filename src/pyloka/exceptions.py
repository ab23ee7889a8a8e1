"""Custom exception hierarchy for pyloka."""

from __future__ import annotations


class LokaError(Exception):
    """Base exception for all pyloka errors."""


class LokaConfigError(LokaError):
    """Invalid or missing configuration."""


class LokaTransportError(LokaError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class LokaApiError(LokaError):
    """Backend answered with an ``ok: false`` envelope or a malformed body."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str = "",
    ) -> None:
        self.endpoint = endpoint
        super().__init__(message)


class LokaAuthenticationError(LokaTransportError):
    """Bearer token missing, expired, or lacking the required actor (HTTP 401/403)."""


class LokaCapabilityError(LokaError):
    """A platform capability reported failure.

    Capability ports never raise these; they hand them back inside a
    failed :class:`~pyloka.ports.Result`.
    """


class PlaybackError(LokaCapabilityError):
    """The alert sound could not be played."""


class SpeechError(LokaCapabilityError):
    """Speech synthesis failed or was interrupted."""


class PushError(LokaCapabilityError):
    """Creating a push subscription failed."""
