#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

"""
Outbound encoder tests.

FileReplayTransport records every wire operation, so we can assert exactly
what an encoder call sent (and that a rejected call sent nothing).
"""

import asyncio
import json
from datetime import datetime

import pytest

from wb.zigbee_presence.client.device.encoder import OutboundEncoder
from wb.zigbee_presence.client.downstream.file_replay.adapter import FileReplayConfig, FileReplayTransport
from wb.zigbee_presence.client.downstream.models import CommandRequest, ReadRequest, WireValue, WriteRequest
from wb.zigbee_presence.lib.constants import DataType
from wb.zigbee_presence.lib.errors import RoutingError, TransportError, ValidationError

DEVICE = "0x00124b0029a1b2c3"


class FailingTransport(FileReplayTransport):
    async def write(self, *args, **kwargs):
        raise TransportError("no ack")


def _encoder(transport=None, clock=None):
    transport = transport or FileReplayTransport(cfg=FileReplayConfig(path="unused.json"))
    kwargs = {"clock": clock} if clock else {}
    return OutboundEncoder(transport, DEVICE, **kwargs), transport


def test_sensor_rejects_unknown_token_without_wire_operations():
    encoder, transport = _encoder()
    with pytest.raises(ValidationError):
        asyncio.run(encoder.set("sensor", "purple"))
    assert transport.operations == []


@pytest.mark.parametrize("value", [None, 1, True])
def test_sensor_rejects_non_text(value):
    encoder, transport = _encoder()
    with pytest.raises(ValidationError):
        asyncio.run(encoder.set("sensor", value))
    assert transport.operations == []


@pytest.mark.parametrize(
    "key,value,endpoint_id,command",
    [
        ("sensor", "ON", 1, "on"),
        ("day_output", "off", 2, "off"),
        ("night_output", "Toggle", 3, "toggle"),
    ],
)
def test_on_off_sends_command_to_routed_endpoint(key, value, endpoint_id, command):
    encoder, transport = _encoder()
    echo = asyncio.run(encoder.set(key, value))
    assert echo == {}
    assert transport.operations == [
        (DEVICE, CommandRequest(endpoint_id=endpoint_id, cluster="genOnOff", command=command))
    ]


def test_illuminance_threshold_write():
    encoder, transport = _encoder()
    echo = asyncio.run(encoder.set("illuminance_threshold", 12345))
    assert echo == {"illuminance_threshold": 12345}
    assert transport.operations == [
        (
            DEVICE,
            WriteRequest(
                endpoint_id=1,
                cluster="msIlluminanceMeasurement",
                attributes={0xF001: WireValue(12345, DataType.UINT16)},
            ),
        )
    ]


def test_measurement_period_coerces_text():
    encoder, transport = _encoder()
    echo = asyncio.run(encoder.set("measurement_period", "30"))
    assert echo == {"measurement_period": 30}
    (_, op), = transport.operations
    assert op.cluster == "msOccupancySensing"
    assert op.attributes == {0xF007: WireValue(30, DataType.UINT16)}


@pytest.mark.parametrize("value", ["bright", 60000, -5, 1.5])
def test_illuminance_threshold_out_of_domain(value):
    encoder, transport = _encoder()
    with pytest.raises(ValidationError):
        asyncio.run(encoder.set("illuminance_threshold", value))
    assert transport.operations == []


def test_min_time_write_and_echo():
    encoder, transport = _encoder()
    echo = asyncio.run(encoder.set("min_time", "08:00"))
    assert echo == {"min_time": "08:00"}
    assert transport.operations == [
        (DEVICE, WriteRequest(endpoint_id=1, cluster="genTime", attributes={0x0003: WireValue(28800, DataType.UINT32)}))
    ]


def test_max_time_write():
    encoder, transport = _encoder()
    asyncio.run(encoder.set("max_time", "22:30"))
    (_, op), = transport.operations
    assert op.attributes == {0x0004: WireValue(81000, DataType.UINT32)}


def test_time_rejects_bad_text():
    encoder, transport = _encoder()
    with pytest.raises(ValidationError):
        asyncio.run(encoder.set("min_time", "8 am"))
    assert transport.operations == []


def test_local_time_ignores_value_and_uses_clock():
    encoder, transport = _encoder(clock=lambda: datetime(2026, 10, 19, 8, 30, 15))
    echo = asyncio.run(encoder.set("local_time", "ignored"))
    assert echo == {"local_time": "08:30"}
    assert transport.operations == [
        (DEVICE, WriteRequest(endpoint_id=1, cluster="genTime", attributes={0x0007: WireValue(30615, DataType.UINT32)}))
    ]


@pytest.mark.parametrize("value,ordinal", [("Never", 1), ("Night", 2), ("0", 0)])
def test_led_mode_write_echoes_caller_value(value, ordinal):
    encoder, transport = _encoder()
    echo = asyncio.run(encoder.set("led_mode", value))
    assert echo == {"led_mode": value}
    assert transport.operations == [
        (DEVICE, WriteRequest(endpoint_id=3, cluster="genOnOff", attributes={0xF004: WireValue(ordinal, DataType.ENUM8)}))
    ]


def test_led_mode_rejects_unknown_label():
    encoder, transport = _encoder()
    with pytest.raises(ValidationError):
        asyncio.run(encoder.set("led_mode", "Sometimes"))
    assert transport.operations == []


@pytest.mark.parametrize(
    "key,endpoint_id,cluster,attribute",
    [
        ("sensor", 1, "genOnOff", "onOff"),
        ("night_output", 3, "genOnOff", "onOff"),
        ("illuminance_threshold", 1, "msIlluminanceMeasurement", 0xF001),
        ("min_time", 1, "genTime", "dstStart"),
        ("max_time", 1, "genTime", "dstEnd"),
        ("local_time", 1, "genTime", "localTime"),
        ("led_mode", 3, "genOnOff", 0xF004),
        ("measurement_period", 1, "msOccupancySensing", 0xF007),
    ],
)
def test_get_reads_backing_attribute(key, endpoint_id, cluster, attribute):
    encoder, transport = _encoder()
    assert asyncio.run(encoder.get(key)) is None
    assert transport.operations == [(DEVICE, ReadRequest(endpoint_id, cluster, (attribute,)))]


@pytest.mark.parametrize("key", ["no_such_key", "illuminance", "target_type"])
def test_routing_error_before_wire_call(key):
    encoder, transport = _encoder()
    with pytest.raises(RoutingError):
        asyncio.run(encoder.set(key, 1))
    with pytest.raises(RoutingError):
        asyncio.run(encoder.get(key))
    assert transport.operations == []


def test_transport_error_propagates_unmodified():
    encoder, _ = _encoder(FailingTransport(cfg=FileReplayConfig(path="unused.json")))
    with pytest.raises(TransportError, match="no ack"):
        asyncio.run(encoder.set("illuminance_threshold", 10))


def test_encode_set_is_pure():
    encoder, transport = _encoder()
    result = encoder.encode_set("min_time", "23:59")
    assert result.state == {"min_time": "23:59"}
    assert len(result.operations) == 1
    assert transport.operations == []


def test_huge_integer_rejected_as_validation_error():
    encoder, transport = _encoder()
    with pytest.raises(ValidationError):
        asyncio.run(encoder.set("illuminance_threshold", json.loads("1" + "0" * 400)))
    assert transport.operations == []
