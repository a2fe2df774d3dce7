#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import argparse
import signal
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from wb.zigbee_presence.client.bridge.state_store import StateStore
from wb.zigbee_presence.client.device.decoder import InboundDecoder
from wb.zigbee_presence.client.downstream.file_replay.adapter import FileReplayConfig, FileReplayTransport
from wb.zigbee_presence.client.downstream.models import InboundEvent


@dataclass
class _RuntimeState:
    stop: bool = False
    store: StateStore = field(default_factory=StateStore)


def _utc_ts() -> str:
    return datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3] + "Z"


def _print_update(event: InboundEvent, update: Dict[str, Any]) -> None:
    # Single-line format for tail -f / journald reading
    print(
        f"[{_utc_ts()}] device={event.device_id!r} cluster={event.cluster!r} "
        f"ep={event.endpoint_id} kind={event.kind!r} update={update!r}"
    )


def _make_handler(state: _RuntimeState, decoder: InboundDecoder, *, only_changes: bool) -> Any:
    """
    Returns handler(event) closure

    If only_changes=True, prints only keys whose value differs from the
    stored state of the device
    """

    def handler(event: InboundEvent) -> None:
        update = decoder.decode(event)
        if only_changes:
            known = state.store.snapshot(event.device_id)
            update = {k: v for k, v in update.items() if k not in known or known[k] != v}
        state.store.apply_confirmed(event.device_id, update)
        if update:
            _print_update(event, update)

    return handler


def _install_signal_handlers(state: _RuntimeState) -> None:
    def _handle_stop(signum: int, frame: Any) -> None:  # noqa: ARG001
        state.stop = True

    signal.signal(signal.SIGINT, _handle_stop)
    signal.signal(signal.SIGTERM, _handle_stop)


def main(argv: Optional[list] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="wb-zigbee-presence-replay-demo",
        description=(
            "Demo: replay recorded gateway reports and print decoded capability updates.\n\n"
            "FileReplayTransport reads the file once per start().\n"
            "With --interval the file is replayed periodically."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    ap.add_argument(
        "--path",
        default=None,
        help="Path to JSON file. If omitted, uses demo.json next to this script.",
    )
    ap.add_argument(
        "--device",
        default=None,
        help="Device ieee used for records without \"device\" key",
    )
    ap.add_argument(
        "--interval",
        type=float,
        default=0.0,
        help="Replay interval in seconds; 0 replays once (default: 0)",
    )
    ap.add_argument(
        "--only-changes",
        action="store_true",
        help="Print only capability values that changed",
    )

    args = ap.parse_args(argv)

    if args.interval < 0:
        print("ERROR: --interval must be >= 0", file=sys.stderr)
        return 2

    # Resolve demo.json relative to this file, not to the working directory
    if args.path is None:
        args.path = str(Path(__file__).resolve().parent / "demo.json")

    state = _RuntimeState()
    _install_signal_handlers(state)
    handler = _make_handler(state, InboundDecoder(), only_changes=bool(args.only_changes))

    print(f"[{_utc_ts()}] replay_demo started: path={args.path!r} interval={args.interval}s", flush=True)

    while not state.stop:
        transport = FileReplayTransport(cfg=FileReplayConfig(path=str(args.path), device_id=args.device))
        try:
            transport.start(handler)
        except (OSError, ValueError) as e:
            # File may be temporarily invalid while being edited
            print(f"[{_utc_ts()}] ERROR: replay failed: {type(e).__name__}: {e}", file=sys.stderr, flush=True)
        finally:
            transport.stop()

        if args.interval == 0:
            break

        # Sleep in small steps so Ctrl+C stops quickly even with large interval
        remaining = float(args.interval)
        step = 0.1
        while remaining > 0 and not state.stop:
            time.sleep(step if remaining > step else remaining)
            remaining -= step

    for device_id in state.store.state:
        print(f"[{_utc_ts()}] state device={device_id!r} {state.store.snapshot(device_id)!r}")
    print(f"[{_utc_ts()}] replay_demo stopped", flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
