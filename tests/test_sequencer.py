from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from pyloka._clock import ManualClock
from pyloka.alerts.sequencer import AlertSequencer, build_alert_item, build_speech_text
from pyloka.exceptions import PlaybackError, SpeechError
from pyloka.models.orders import LatestOrder
from pyloka.notifications.stack import NotificationStack
from pyloka.ports import NoSpeech, NullAudio, Result


@dataclass
class FakeAudio:
    fail: bool = False
    explode: bool = False
    plays: int = 0

    async def play_alert_sound(self) -> Result[None]:
        self.plays += 1
        if self.explode:
            raise RuntimeError("audio context suspended")
        if self.fail:
            return Result.failure(PlaybackError("autoplay blocked"))
        return Result.success()


@dataclass
class FakeSpeech:
    clock: ManualClock
    available: bool = True
    failures: int = 0
    spoken: list[tuple[float, str, str]] = field(default_factory=list)

    def is_available(self) -> bool:
        return self.available

    async def speak(self, text: str, locale: str) -> Result[None]:
        self.spoken.append((self.clock.now(), text, locale))
        if len(self.spoken) <= self.failures:
            return Result.failure(SpeechError("interrupted"))
        return Result.success()


def _order(order_id: int = 11) -> LatestOrder:
    return LatestOrder(id=order_id, customer_name="Budi", package_name="Cuci Kering")


def _sequencer(clock: ManualClock, audio: FakeAudio, speech: FakeSpeech) -> tuple[AlertSequencer, NotificationStack]:
    stack = NotificationStack(clock=clock)
    return AlertSequencer(stack, audio, speech, clock=clock, locale="id-ID"), stack


def test_alert_copy() -> None:
    item = build_alert_item(_order())
    assert item.id == 11
    assert item.title == "Pesanan Baru Masuk!"
    assert item.body == "Budi telah membuat pesanan baru: Cuci Kering"
    assert item.is_persistent is False
    assert build_speech_text(_order()) == "Pesanan baru dari Budi untuk paket Cuci Kering"


@pytest.mark.asyncio
async def test_full_sequence_pushes_item_plays_sound_then_speaks_after_delay() -> None:
    clock = ManualClock()
    audio = FakeAudio()
    speech = FakeSpeech(clock)
    sequencer, stack = _sequencer(clock, audio, speech)

    task = sequencer.handle(_order())
    assert [i.id for i in stack.visible] == [11]

    await clock.advance(599)
    assert audio.plays == 1
    assert speech.spoken == []

    await clock.advance(1)
    assert speech.spoken == [(600, "Pesanan baru dari Budi untuk paket Cuci Kering", "id-ID")]
    assert task.done()


@pytest.mark.asyncio
async def test_failed_sound_does_not_block_speech() -> None:
    clock = ManualClock()
    speech = FakeSpeech(clock)
    sequencer, stack = _sequencer(clock, FakeAudio(fail=True), speech)

    sequencer.handle(_order())
    await clock.advance(600)

    assert len(speech.spoken) == 1
    assert [i.id for i in stack.visible] == [11]


@pytest.mark.asyncio
async def test_raising_audio_port_is_contained() -> None:
    clock = ManualClock()
    speech = FakeSpeech(clock)
    sequencer, _ = _sequencer(clock, FakeAudio(explode=True), speech)

    sequencer.handle(_order())
    await clock.advance(600)

    assert len(speech.spoken) == 1


@pytest.mark.asyncio
async def test_speech_retried_once_after_500ms() -> None:
    clock = ManualClock()
    speech = FakeSpeech(clock, failures=1)
    sequencer, _ = _sequencer(clock, FakeAudio(), speech)

    task = sequencer.handle(_order())
    await clock.advance(5000)

    assert [ts for ts, _, _ in speech.spoken] == [600, 1100]
    assert task.done()


@pytest.mark.asyncio
async def test_speech_gives_up_after_two_attempts() -> None:
    clock = ManualClock()
    speech = FakeSpeech(clock, failures=10)
    sequencer, _ = _sequencer(clock, FakeAudio(), speech)

    task = sequencer.handle(_order())
    await clock.advance(10_000)

    assert len(speech.spoken) == 2
    assert task.done()
    assert task.exception() is None


@pytest.mark.asyncio
async def test_unavailable_speech_is_skipped_silently() -> None:
    clock = ManualClock()
    speech = FakeSpeech(clock, available=False)
    sequencer, stack = _sequencer(clock, FakeAudio(), speech)

    task = sequencer.handle(_order())
    await clock.advance(600)

    assert speech.spoken == []
    assert task.done()
    assert [i.id for i in stack.visible] == [11]


@pytest.mark.asyncio
async def test_aclose_cancels_pending_speech() -> None:
    clock = ManualClock()
    speech = FakeSpeech(clock)
    sequencer, _ = _sequencer(clock, FakeAudio(), speech)

    sequencer.handle(_order())
    await clock.advance(100)
    assert sequencer.in_flight == 1

    await sequencer.aclose()
    await clock.advance(1000)
    assert speech.spoken == []
    assert sequencer.in_flight == 0


@pytest.mark.asyncio
async def test_host_without_audio_or_speech_still_shows_toast() -> None:
    clock = ManualClock()
    stack = NotificationStack(clock=clock)
    sequencer = AlertSequencer(stack, NullAudio(), NoSpeech(), clock=clock)

    task = sequencer.handle(_order())
    await clock.advance(600)

    assert task.done()
    assert [i.id for i in stack.visible] == [11]
