#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from wb.zigbee_presence.client.downstream.file_replay.adapter import FileReplayConfig, FileReplayTransport
from wb.zigbee_presence.client.downstream.models import CommandRequest, InboundEvent, ReadRequest

REPORTS = Path(__file__).parent / "configs" / "reports_example.json"


def test_replay_emits_events_and_skips_malformed():
    transport = FileReplayTransport(cfg=FileReplayConfig(path=str(REPORTS), device_id="0xfallback"))
    received = []
    transport.start(received.append)

    assert len(received) == 5
    assert received[0] == InboundEvent(
        device_id="0x00124b0029a1b2c3",
        cluster="genOnOff",
        kind="attributeReport",
        endpoint_id=1,
        data={"onOff": 1},
    )
    assert received[3].data == {0xF004: 2}
    assert received[4].device_id == "0xfallback"


def test_replay_requires_json_array(tmp_path: Path):
    p = tmp_path / "reports.json"
    p.write_text(json.dumps({"cluster": "genOnOff"}), encoding="utf-8")
    transport = FileReplayTransport(cfg=FileReplayConfig(path=str(p)))
    with pytest.raises(ValueError):
        transport.start(lambda event: None)


def test_missing_file_raises_os_error(tmp_path: Path):
    transport = FileReplayTransport(cfg=FileReplayConfig(path=str(tmp_path / "missing.json")))
    with pytest.raises(OSError):
        transport.start(lambda event: None)


def test_operations_are_recorded():
    transport = FileReplayTransport(cfg=FileReplayConfig(path="unused.json"))
    assert asyncio.run(transport.perform("0x01", ReadRequest(1, "genTime", ("dstStart",)))) == {}
    asyncio.run(transport.perform("0x01", CommandRequest(2, "genOnOff", "toggle")))
    assert transport.transport_name == "file_replay"
    assert transport.operations == [
        ("0x01", ReadRequest(1, "genTime", ("dstStart",))),
        ("0x01", CommandRequest(2, "genOnOff", "toggle")),
    ]


def test_perform_rejects_unknown_operation():
    transport = FileReplayTransport(cfg=FileReplayConfig(path="unused.json"))
    with pytest.raises(TypeError):
        asyncio.run(transport.perform("0x01", "read everything"))
