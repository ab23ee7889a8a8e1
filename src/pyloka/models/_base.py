"""Base model for pyloka wire and persisted models.

Every model inherits from :class:`LokaBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops ``None`` and blank
  strings so the field default is used instead.
* Frozen instances; state changes produce new models.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce an ISO-8601 string or epoch number (seconds or ms) to an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    ts = int(value)
    if ts >= _MS_THRESHOLD:
        ts = ts // 1000
    return datetime.fromtimestamp(ts, tz=UTC)


LokaTimestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type accepting ISO strings or epoch ints, yielding UTC datetimes."""


def utcnow() -> datetime:
    return datetime.now(UTC)


class LokaBaseModel(BaseModel):
    """Base for pyloka models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {
            key: value
            for key, value in values.items()
            if value is not None and not (isinstance(value, str) and not value.strip())
        }
