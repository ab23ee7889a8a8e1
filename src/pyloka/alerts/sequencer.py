"""Multi-channel new-order alert.

On each detected order the sequencer:

1. pushes a non-persistent notification item onto the stack,
2. starts the alert sound without waiting for it,
3. after :data:`PRE_SPEECH_DELAY_MS` checks whether speech exists at all,
4. speaks a summary, retrying once after :data:`SPEECH_RETRY_DELAY_MS`.

Every stage is independent: a failed sound never stops the speech and a
failed speech never surfaces to the user.  The 600 ms gap is a fixed
guess at "the sound has started", not a completion signal from the
audio port.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Coroutine
from typing import Any

from pyloka._clock import Clock, sleep
from pyloka._constants import (
    DEFAULT_SPEECH_LOCALE,
    NEW_ORDER_BODY,
    NEW_ORDER_SPEECH,
    NEW_ORDER_TITLE,
    PRE_SPEECH_DELAY_MS,
    SPEECH_MAX_ATTEMPTS,
    SPEECH_RETRY_DELAY_MS,
)
from pyloka._retry import retry_with_delay
from pyloka.exceptions import PlaybackError, SpeechError
from pyloka.models.notification import NotificationItem
from pyloka.models.orders import LatestOrder
from pyloka.notifications.stack import NotificationStack
from pyloka.ports import AudioPort, Result, SpeechPort, guard_port_call

_logger = logging.getLogger(__name__)


def build_alert_item(order: LatestOrder) -> NotificationItem:
    """Notification item summarising a newly detected order."""
    return NotificationItem(
        id=order.id,
        title=NEW_ORDER_TITLE,
        body=NEW_ORDER_BODY.format(customer=order.customer_name, package=order.package_name),
        is_persistent=False,
    )


def build_speech_text(order: LatestOrder) -> str:
    return NEW_ORDER_SPEECH.format(customer=order.customer_name, package=order.package_name)


class AlertSequencer:
    """Drives the display, sound and speech channels for new orders."""

    def __init__(
        self,
        stack: NotificationStack,
        audio: AudioPort,
        speech: SpeechPort,
        *,
        clock: Clock,
        locale: str = DEFAULT_SPEECH_LOCALE,
    ) -> None:
        self._stack = stack
        self._audio = audio
        self._speech = speech
        self._clock = clock
        self._locale = locale
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def handle(self, order: LatestOrder) -> asyncio.Task[None]:
        """Start the alert for *order* and return without waiting on any channel."""
        self._stack.push(build_alert_item(order))
        self._spawn(self._play_sound(order.id))
        return self._spawn(self._speak_later(order))

    async def aclose(self) -> None:
        """Cancel every alert still in progress."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _play_sound(self, order_id: int) -> None:
        result: Result[None] = await guard_port_call(
            self._audio.play_alert_sound, PlaybackError, name="audio.play_alert_sound"
        )
        if not result.ok:
            _logger.warning("Alert sound for order %s failed: %s", order_id, result.error)

    def _speech_available(self) -> bool:
        try:
            return bool(self._speech.is_available())
        except Exception:
            _logger.debug("speech.is_available raised; treating speech as unavailable", exc_info=True)
            return False

    async def _speak_later(self, order: LatestOrder) -> None:
        await sleep(self._clock, PRE_SPEECH_DELAY_MS)
        if not self._speech_available():
            _logger.debug("Speech synthesis unavailable; skipping spoken alert for order %s", order.id)
            return

        text = build_speech_text(order)

        async def _attempt() -> Result[None]:
            return await guard_port_call(
                lambda: self._speech.speak(text, self._locale),
                SpeechError,
                name="speech.speak",
            )

        result = await retry_with_delay(
            _attempt,
            max_attempts=SPEECH_MAX_ATTEMPTS,
            delay_ms=SPEECH_RETRY_DELAY_MS,
            clock=self._clock,
            name="speech.speak",
        )
        if not result.ok:
            _logger.warning("Spoken alert for order %s gave up after retry: %s", order.id, result.error)
