"""Client configuration for pyloka."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pyloka._constants import BASE_URL, DEFAULT_SPEECH_LOCALE, speech_locale
from pyloka.exceptions import LokaConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class LokaConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        REST API base URL, including the ``/api`` prefix.
    auth_token : str or None
        Bearer token sent with every request.  The pending-orders
        summary requires an admin token; push subscription requires a
        user token.
    locale : str
        Speech synthesis locale for spoken alerts (e.g. ``"id-ID"``).
    vapid_public_key : str or None
        Local fallback push public key (base64url), used when the
        backend does not publish one.
    state_path : Path or None
        JSON file backing the durable onboarding records.  ``None``
        keeps them in memory for the lifetime of the process.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    """

    base_url: str = BASE_URL
    auth_token: str | None = None
    locale: str = DEFAULT_SPEECH_LOCALE
    vapid_public_key: str | None = None
    state_path: Path | None = None
    request_timeout: float = 10.0
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if not self.base_url.strip():
            raise LokaConfigError("base_url must be non-empty")
        if self.request_timeout <= 0:
            raise LokaConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        # Normalise so endpoint paths can always be appended with a leading slash.
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))
        object.__setattr__(self, "locale", speech_locale(self.locale))

    @classmethod
    def from_env(cls, **overrides: Any) -> LokaConfig:
        """Create configuration from environment variables.

        Reads ``LOKA_BASE_URL``, ``LOKA_AUTH_TOKEN``, ``LOKA_LOCALE``,
        ``LOKA_VAPID_PUBLIC_KEY``, ``LOKA_STATE_PATH``,
        ``LOKA_REQUEST_TIMEOUT`` and ``LOKA_API_TRACE_ENABLED``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "LOKA_BASE_URL": "base_url",
            "LOKA_AUTH_TOKEN": "auth_token",
            "LOKA_LOCALE": "locale",
            "LOKA_VAPID_PUBLIC_KEY": "vapid_public_key",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        state_env = env.get("LOKA_STATE_PATH")
        if state_env and "state_path" not in overrides:
            config_kwargs["state_path"] = Path(state_env).expanduser()

        timeout_env = env.get("LOKA_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            try:
                config_kwargs["request_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise LokaConfigError(f"LOKA_REQUEST_TIMEOUT is not a number: {timeout_env!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("LOKA_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
