#!/usr/bin/env python3
"""Watch the admin pending-orders summary and announce new orders.

Polls the backend the same way the admin dashboard does and runs the
full alert sequence against console stand-ins for the sound and speech
channels, so the detection and alert timing can be checked from a
terminal.

Usage
-----
Set environment variables and run::

    export LOKA_BASE_URL="http://localhost:4000/api"
    export LOKA_AUTH_TOKEN="<admin token>"
    python scripts/watch_orders.py

Options::

    --once               Fetch the summary once, print it and exit
    --duration SECONDS   Stop after SECONDS (default: run until Ctrl-C)
    --json               Print the --once summary as JSON
    --no-sound           Skip the console alert sound
    --no-speech          Skip the console spoken alert
    --verbose / -v       Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyloka import (  # noqa: E402
    AlertSequencer,
    LokaClient,
    LokaConfig,
    LokaError,
    LoopClock,
    NoSpeech,
    NotificationItem,
    NotificationStack,
    NullAudio,
    OrderChangeDetector,
    Result,
)


class ConsoleAudio:
    async def play_alert_sound(self) -> Result[None]:
        print("\a[sound] ding-ding-ding", flush=True)
        return Result.success()


class ConsoleSpeech:
    def is_available(self) -> bool:
        return True

    async def speak(self, text: str, locale: str) -> Result[None]:
        print(f"[speech:{locale}] {text}", flush=True)
        return Result.success()


def _print_visible(items: list[NotificationItem]) -> None:
    if not items:
        print("[toast] (none)", flush=True)
        return
    for item in items:
        print(f"[toast] #{item.id} {item.title} - {item.body}", flush=True)


async def _once(client: LokaClient, json_mode: bool) -> None:
    snapshot = await client.get_pending_orders_summary()
    if json_mode:
        print(json.dumps(snapshot.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
        return
    print(f"pending : {snapshot.count}")
    latest = snapshot.latest_order
    if latest is None:
        print("latest  : -")
    else:
        print(f"latest  : #{latest.id} {latest.customer_name} / {latest.package_name}")


async def _watch(client: LokaClient, duration: float | None, *, sound: bool, speech: bool) -> None:
    clock = LoopClock()
    stack = NotificationStack(clock=clock, on_change=_print_visible)
    sequencer = AlertSequencer(
        stack,
        ConsoleAudio() if sound else NullAudio(),
        ConsoleSpeech() if speech else NoSpeech(),
        clock=clock,
        locale=client.config.locale,
    )
    detector = OrderChangeDetector(
        client,
        clock=clock,
        on_new_order=sequencer.handle,
        on_count=lambda count: print(f"[badge] {count} pending", flush=True),
    )
    detector.start()
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        await detector.stop()
        await sequencer.aclose()
        stack.clear()


async def main() -> int:
    parser = argparse.ArgumentParser(description="Watch pending orders and announce new ones")
    parser.add_argument("--once", action="store_true", help="Fetch the summary once and exit")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--no-sound", action="store_true", help="Do not print the alert sound")
    parser.add_argument("--no-speech", action="store_true", help="Do not print the spoken alert")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = LokaConfig.from_env()
    try:
        async with LokaClient(config) as client:
            if args.once:
                await _once(client, args.json_mode)
            else:
                await _watch(client, args.duration, sound=not args.no_sound, speech=not args.no_speech)
    except LokaError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        sys.exit(asyncio.run(main()))
