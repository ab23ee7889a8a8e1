"""On-screen notification item."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from pyloka.models._base import LokaBaseModel, LokaTimestamp, utcnow


class NotificationItem(LokaBaseModel):
    """A single notification shown in the stack.

    ``is_persistent`` marks reminder-class items that never auto-dismiss.
    It is set by whoever produces the item; nothing infers it from the
    title or id.
    """

    id: int
    title: str
    body: str = Field(default="", validation_alias=AliasChoices("body", "message"))
    is_persistent: bool = False
    created_at: LokaTimestamp = Field(default_factory=utcnow)

