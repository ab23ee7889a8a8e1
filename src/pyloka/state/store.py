"""Durable key-value persistence for onboarding records.

Writes are last-write-wins from the perspective of a single session;
there is only ever one writer per key.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from pyloka.models.onboarding import OnboardingRecord, OnboardingState

_logger = logging.getLogger(__name__)

# Value older clients stored under the install key once the app was installed.
_LEGACY_INSTALLED_VALUE = "1"


class KeyValueStore(Protocol):
    """Structural interface for durable string storage."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """In-process store; survives nothing but is handy for tests and demos."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileStore:
    """Store backed by a single JSON object on disk.

    The file is read once at construction and rewritten on every
    :meth:`set`.  A missing or unreadable file starts out empty.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._data: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError:
            _logger.warning("Could not read state file %s; starting empty", self._path, exc_info=True)
            return {}
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("State file %s is not valid JSON; starting empty", self._path)
            return {}
        if not isinstance(raw, dict):
            _logger.warning("State file %s does not hold an object; starting empty", self._path)
            return {}
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(f"{self._path.suffix}.tmp")
        tmp.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self._path)


def _parse_state(raw: str | None) -> OnboardingState:
    if raw is None:
        return OnboardingState.IDLE
    value = raw.strip().lower()
    if value == _LEGACY_INSTALLED_VALUE:
        return OnboardingState.COMPLETED
    try:
        return OnboardingState(value)
    except ValueError:
        return OnboardingState.IDLE


class OnboardingStore:
    """Typed access to the per-machine :class:`OnboardingRecord`."""

    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend

    def load(self, key: str) -> OnboardingRecord:
        return OnboardingRecord(state=_parse_state(self._backend.get(key)))

    def save(self, key: str, record: OnboardingRecord) -> bool:
        """Write *record*; returns ``False`` when the backend could not store it.

        A failed write is logged and otherwise ignored, so callers keep
        their in-memory state for the rest of the session.
        """
        try:
            self._backend.set(key, record.state.value)
        except OSError as exc:
            _logger.warning("Could not persist %s=%s: %s", key, record.state.value, exc)
            return False
        _logger.debug("Persisted %s=%s", key, record.state.value)
        return True


def open_store(state_path: Path | None) -> KeyValueStore:
    """Durable store at *state_path*, or an in-memory one when it is ``None``."""
    if state_path is None:
        return MemoryStore()
    return JsonFileStore(state_path)
