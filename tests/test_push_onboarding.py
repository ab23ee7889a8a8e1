from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from pyloka._clock import ManualClock
from pyloka._constants import PUSH_ONBOARDING_STATE_KEY
from pyloka.exceptions import LokaApiError, PushError
from pyloka.models.onboarding import PermissionStatus
from pyloka.models.push import PushSubscription
from pyloka.onboarding.push import PushOnboardingMachine, PushPromptState, ensure_push_subscription
from pyloka.ports import Result
from pyloka.state.store import JsonFileStore, KeyValueStore, MemoryStore, OnboardingStore

_PUBLIC_KEY = "BEl62iUYgUivxIkv69yViEuiBIa-Ib9-SkvMeAtA3LFgDzkrxZJjSgSnfckjBJuBkr3qBUYIHBQFLXYp5Nksh8U"


def _subscription(endpoint: str = "https://push.example/abc") -> PushSubscription:
    return PushSubscription.model_validate(
        {"endpoint": endpoint, "expirationTime": None, "keys": {"p256dh": "p-key", "auth": "a-key"}}
    )


@dataclass
class FakeBackend:
    public_key: str | None = _PUBLIC_KEY
    fail_key: bool = False
    fail_register: bool = False
    registered: list[PushSubscription] = field(default_factory=list)

    async def get_push_public_key(self) -> str | None:
        if self.fail_key:
            raise LokaApiError("key lookup failed", endpoint="/push/public-key")
        return self.public_key

    async def subscribe_push(self, subscription: PushSubscription) -> None:
        if self.fail_register:
            raise LokaApiError("register failed", endpoint="/push/subscribe")
        self.registered.append(subscription)


@dataclass
class FakePermissions:
    status: PermissionStatus = PermissionStatus.DEFAULT
    answer: PermissionStatus = PermissionStatus.GRANTED
    requests: int = 0

    def permission_status(self) -> PermissionStatus:
        return self.status

    async def request_permission(self) -> PermissionStatus:
        self.requests += 1
        self.status = self.answer
        return self.answer


@dataclass
class GatedPermissions(FakePermissions):
    gate: asyncio.Event = field(default_factory=asyncio.Event)

    async def request_permission(self) -> PermissionStatus:
        self.requests += 1
        await self.gate.wait()
        self.status = self.answer
        return self.answer


@dataclass
class FakePush:
    ready: bool = True
    existing: PushSubscription | None = None
    subscribe_fails: bool = False
    subscribe_calls: list[bytes] = field(default_factory=list)

    async def service_worker_ready(self) -> bool:
        return self.ready

    async def get_subscription(self) -> PushSubscription | None:
        return self.existing

    async def subscribe(self, application_server_key: bytes) -> Result[PushSubscription]:
        self.subscribe_calls.append(application_server_key)
        if self.subscribe_fails:
            return Result.failure(PushError("push service unreachable"))
        self.existing = _subscription()
        return Result.success(self.existing)


@dataclass
class RecordingStore:
    fail_writes: bool = False
    data: dict[str, str] = field(default_factory=dict)
    writes: list[tuple[str, str]] = field(default_factory=list)

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes.append((key, value))
        if self.fail_writes:
            raise OSError("disk full")
        self.data[key] = value


@dataclass
class EventLog:
    events: list[str] = field(default_factory=list)

    def __call__(self, name: str, data: Any = None) -> None:
        self.events.append(name)


@dataclass
class Harness:
    clock: ManualClock
    backend: FakeBackend
    permissions: FakePermissions
    push: FakePush
    events: EventLog
    visibility: list[bool]
    machine: PushOnboardingMachine


def _harness(
    kv: KeyValueStore | None = None,
    *,
    backend: FakeBackend | None = None,
    permissions: FakePermissions | None = None,
    push: FakePush | None = None,
    fallback_public_key: str | None = None,
) -> Harness:
    clock = ManualClock()
    backend = backend or FakeBackend()
    permissions = permissions or FakePermissions()
    push = push or FakePush()
    events = EventLog()
    visibility: list[bool] = []
    machine = PushOnboardingMachine(
        OnboardingStore(kv if kv is not None else MemoryStore()),
        backend,
        permissions,
        push,
        clock=clock,
        fallback_public_key=fallback_public_key,
        on_prompt_visible=visibility.append,
        track_event=events,
    )
    return Harness(clock, backend, permissions, push, events, visibility, machine)


async def _show_prompt(h: Harness) -> None:
    h.machine.on_app_installed()
    await h.clock.advance(2200)
    assert h.machine.state is PushPromptState.PROMPT_SHOWN


@pytest.mark.asyncio
async def test_prompt_appears_2200ms_after_install() -> None:
    h = _harness()
    h.machine.on_app_installed()
    assert h.machine.state is PushPromptState.PROMPT_SCHEDULED

    await h.clock.advance(2199)
    assert not h.machine.prompt_visible

    await h.clock.advance(1)
    assert h.machine.prompt_visible
    assert h.visibility == [True]


@pytest.mark.asyncio
async def test_accept_subscribes_registers_and_completes() -> None:
    kv = MemoryStore()
    h = _harness(kv)
    await _show_prompt(h)

    assert await h.machine.accept() is PushPromptState.COMPLETED
    assert len(h.push.subscribe_calls) == 1
    assert h.push.subscribe_calls[0][:1] == b"\x04"
    assert [s.endpoint for s in h.backend.registered] == ["https://push.example/abc"]
    assert h.machine.subscription is not None
    assert kv.get(PUSH_ONBOARDING_STATE_KEY) == "completed"
    assert h.visibility == [True, False]
    assert h.events.events == [
        "push_permission_requested",
        "push_permission_granted",
        "welcome_notification_sent",
    ]


@pytest.mark.asyncio
async def test_existing_subscription_is_reused() -> None:
    h = _harness(push=FakePush(existing=_subscription("https://push.example/existing")))
    await _show_prompt(h)

    assert await h.machine.accept() is PushPromptState.COMPLETED
    assert h.push.subscribe_calls == []
    assert [s.endpoint for s in h.backend.registered] == ["https://push.example/existing"]


@pytest.mark.asyncio
async def test_permission_refused_is_denied_and_persisted() -> None:
    kv = MemoryStore()
    h = _harness(kv, permissions=FakePermissions(answer=PermissionStatus.DENIED))
    await _show_prompt(h)

    assert await h.machine.accept() is PushPromptState.DENIED
    assert h.push.subscribe_calls == []
    assert kv.get(PUSH_ONBOARDING_STATE_KEY) == "denied"
    assert "push_permission_denied" in h.events.events


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "backend, push",
    [
        (FakeBackend(), FakePush(ready=False)),
        (FakeBackend(public_key=None), FakePush()),
        (FakeBackend(fail_key=True), FakePush()),
        (FakeBackend(), FakePush(subscribe_fails=True)),
        (FakeBackend(fail_register=True), FakePush()),
        (FakeBackend(public_key="not base64 !!"), FakePush()),
    ],
    ids=["no-service-worker", "no-key", "key-error", "subscribe-fails", "register-fails", "bad-key"],
)
async def test_any_pipeline_failure_ends_denied(backend: FakeBackend, push: FakePush) -> None:
    h = _harness(backend=backend, push=push)
    await _show_prompt(h)

    assert await h.machine.accept() is PushPromptState.DENIED
    assert not h.machine.processing


@pytest.mark.asyncio
async def test_local_fallback_key_used_when_server_has_none() -> None:
    h = _harness(backend=FakeBackend(public_key=None), fallback_public_key=_PUBLIC_KEY)
    await _show_prompt(h)

    assert await h.machine.accept() is PushPromptState.COMPLETED
    assert len(h.push.subscribe_calls) == 1


@pytest.mark.asyncio
async def test_accept_outside_prompt_is_ignored() -> None:
    h = _harness()
    assert await h.machine.accept() is PushPromptState.IDLE
    assert h.permissions.requests == 0


@pytest.mark.asyncio
async def test_undecided_permission_required_to_schedule() -> None:
    h = _harness(permissions=FakePermissions(status=PermissionStatus.GRANTED))
    h.machine.on_app_installed()
    assert h.machine.state is PushPromptState.IDLE
    assert h.clock.pending == []


@pytest.mark.asyncio
async def test_skip_hides_prompt_and_allows_later_offer() -> None:
    kv = RecordingStore()
    h = _harness(kv)
    await _show_prompt(h)
    writes_before = len(kv.writes)

    h.machine.skip()
    assert h.machine.state is PushPromptState.IDLE
    assert not h.machine.prompt_visible
    assert len(kv.writes) == writes_before
    assert kv.get(PUSH_ONBOARDING_STATE_KEY) == "idle"

    h.machine.on_app_installed()
    assert h.machine.state is PushPromptState.PROMPT_SCHEDULED


@pytest.mark.asyncio
async def test_close_cancels_scheduled_prompt() -> None:
    h = _harness()
    h.machine.on_app_installed()
    h.machine.close()
    await h.clock.advance(5000)
    assert not h.machine.prompt_visible


@pytest.mark.asyncio
@pytest.mark.parametrize("answer, expected", [
    (PermissionStatus.GRANTED, PushPromptState.COMPLETED),
    (PermissionStatus.DENIED, PushPromptState.DENIED),
])
async def test_terminal_state_survives_restart(
    tmp_path: Path, answer: PermissionStatus, expected: PushPromptState
) -> None:
    path = tmp_path / "state.json"
    h = _harness(JsonFileStore(path), permissions=FakePermissions(answer=answer))
    await _show_prompt(h)
    assert await h.machine.accept() is expected

    # New session: fresh store on the same file, permission undecided again.
    restarted = _harness(JsonFileStore(path))
    assert restarted.machine.state is expected
    restarted.machine.on_app_installed()
    await restarted.clock.advance(5000)
    assert restarted.machine.state is expected
    assert not restarted.machine.prompt_visible


@pytest.mark.asyncio
async def test_ensure_subscription_is_idempotent() -> None:
    backend = FakeBackend()
    push = FakePush()

    first = await ensure_push_subscription(backend, push)
    second = await ensure_push_subscription(backend, push)

    assert first.endpoint == second.endpoint
    assert len(push.subscribe_calls) == 1
    assert len(backend.registered) == 2


@pytest.mark.asyncio
async def test_ensure_subscription_without_service_worker_raises() -> None:
    with pytest.raises(PushError):
        await ensure_push_subscription(FakeBackend(), FakePush(ready=False))


@pytest.mark.asyncio
async def test_failed_state_write_still_shows_prompt() -> None:
    kv = RecordingStore(fail_writes=True)
    h = _harness(kv)

    h.machine.on_app_installed()
    assert h.machine.state is PushPromptState.PROMPT_SCHEDULED
    assert len(h.clock.pending) == 1

    await h.clock.advance(2200)
    assert h.machine.prompt_visible
    assert kv.writes


@pytest.mark.asyncio
async def test_failed_state_write_does_not_escape_accept() -> None:
    kv = RecordingStore()
    h = _harness(kv)
    await _show_prompt(h)
    kv.fail_writes = True

    assert await h.machine.accept() is PushPromptState.COMPLETED
    assert len(h.backend.registered) == 1
    assert kv.writes[-1] == (PUSH_ONBOARDING_STATE_KEY, "completed")
    assert kv.get(PUSH_ONBOARDING_STATE_KEY) == "idle"


@pytest.mark.asyncio
async def test_concurrent_accept_runs_pipeline_once() -> None:
    permissions = GatedPermissions()
    h = _harness(permissions=permissions)
    await _show_prompt(h)

    both = asyncio.gather(h.machine.accept(), h.machine.accept())
    await h.clock.advance(0)
    assert h.machine.processing
    permissions.gate.set()
    first, second = await both

    assert h.permissions.requests == 1
    assert len(h.push.subscribe_calls) <= 1
    assert len(h.backend.registered) == 1
    assert first is PushPromptState.COMPLETED
    assert second is PushPromptState.PROMPT_SHOWN
    assert h.machine.state is PushPromptState.COMPLETED
