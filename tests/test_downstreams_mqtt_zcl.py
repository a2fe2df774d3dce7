#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from wb.zigbee_presence.client.bridge.config_loader import GatewayConfig, MqttConnectionConfig
from wb.zigbee_presence.client.downstream.models import InboundEvent, WireValue
from wb.zigbee_presence.client.downstream.mqtt_zcl.adapter import MqttZclTransport
from wb.zigbee_presence.client.downstream.mqtt_zcl.codec import (
    GatewayCodec,
    attribute_key_from_json,
    attribute_key_to_json,
)
from wb.zigbee_presence.lib.constants import DataType
from wb.zigbee_presence.lib.errors import TransportError

DEV = "0x00124b0029a1b2c3"


def _paho(rc: int = 0) -> MagicMock:
    client = MagicMock()
    client.publish.return_value.rc = rc
    return client


def _transport(client: MagicMock, timeout: float = 1.0) -> MqttZclTransport:
    return MqttZclTransport(
        cfg=MqttConnectionConfig(host="localhost", port=1883, qos=1),
        gateway=GatewayConfig(prefix="zcl", response_timeout=timeout),
        client=client,
    )


def _message(topic: str, payload) -> MagicMock:
    msg = MagicMock()
    msg.topic = topic
    msg.payload = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return msg


def _published(client: MagicMock) -> dict:
    return json.loads(client.publish.call_args.kwargs["payload"])


async def _respond(transport: MqttZclTransport, client: MagicMock, coro, response: dict):
    task = asyncio.ensure_future(coro)
    await asyncio.sleep(0)
    request = _published(client)
    transport._on_message(client, None, _message(f"zcl/{DEV}/response", dict(response, id=request["id"])))
    return await task


@pytest.mark.parametrize(
    "key,expected",
    [("0xF001", 0xF001), ("0xf004", 0xF004), ("61441", 61441), ("onOff", "onOff"), ("0xzz", "0xzz")],
)
def test_attribute_key_from_json(key, expected):
    assert attribute_key_from_json(key) == expected


def test_attribute_key_to_json():
    assert attribute_key_to_json(0xF001) == "0xF001"
    assert attribute_key_to_json("dstStart") == "dstStart"


def test_codec_decode_report_and_malformed():
    codec = GatewayCodec()
    event = codec.decode_report(DEV, b'{"cluster": "genOnOff", "type": "readResponse", "endpoint": 3, "data": {"0xF004": 1}}')
    assert event == InboundEvent(device_id=DEV, cluster="genOnOff", kind="readResponse", endpoint_id=3, data={0xF004: 1})
    with pytest.raises(ValueError):
        codec.decode_report(DEV, b'{"cluster": "genOnOff"}')
    with pytest.raises(ValueError):
        codec.decode_report(DEV, b"not json")
    with pytest.raises(ValueError):
        codec.decode_response(b'{"status": "ok"}')


def test_start_subscribes_and_starts_loop():
    client = _paho()
    transport = _transport(client)
    transport.start(lambda event: None)
    client.connect.assert_called_once_with("localhost", 1883, keepalive=60)
    client.subscribe.assert_any_call("zcl/+/response")
    client.subscribe.assert_any_call("zcl/+/report")
    client.loop_start.assert_called_once()


def test_report_dispatched_to_handler():
    client = _paho()
    transport = _transport(client)
    received = []
    transport.start(received.append)

    transport._on_message(
        client,
        None,
        _message(f"zcl/{DEV}/report", {"cluster": "genOnOff", "endpoint": 2, "data": {"onOff": 1}}),
    )
    transport._on_message(client, None, _message(f"zcl/{DEV}/report", b"garbage"))
    transport._on_message(client, None, _message(f"other/{DEV}/report", {"cluster": "genOnOff", "endpoint": 2}))

    assert received == [
        InboundEvent(device_id=DEV, cluster="genOnOff", kind="attributeReport", endpoint_id=2, data={"onOff": 1})
    ]


def test_read_resolved_by_response():
    client = _paho()
    transport = _transport(client)

    data = asyncio.run(
        _respond(
            transport,
            client,
            transport.read(DEV, 1, "genTime", ["dstStart", 0xF001]),
            {"status": "ok", "data": {"dstStart": 28800}},
        )
    )

    assert data == {"dstStart": 28800}
    assert client.publish.call_args.args == (f"zcl/{DEV}/request",)
    assert client.publish.call_args.kwargs["qos"] == 1
    request = _published(client)
    assert request["op"] == "read"
    assert request["endpoint"] == 1
    assert request["attributes"] == ["dstStart", "0xF001"]


def test_write_body_carries_datatype():
    client = _paho()
    transport = _transport(client)

    asyncio.run(
        _respond(
            transport,
            client,
            transport.write(DEV, 1, "msIlluminanceMeasurement", {0xF001: WireValue(12345, DataType.UINT16)}),
            {"status": "ok"},
        )
    )

    request = _published(client)
    assert request["op"] == "write"
    assert request["cluster"] == "msIlluminanceMeasurement"
    assert request["attributes"] == {"0xF001": {"value": 12345, "type": 0x21}}


def test_error_response_raises_transport_error():
    client = _paho()
    transport = _transport(client)
    with pytest.raises(TransportError, match="unsupported attribute"):
        asyncio.run(
            _respond(
                transport,
                client,
                transport.command(DEV, 3, "genOnOff", "on", {}, {}),
                {"status": "error", "error": "unsupported attribute"},
            )
        )
    assert transport._pending == {}


def test_missing_response_times_out():
    client = _paho()
    transport = _transport(client, timeout=0.01)
    with pytest.raises(TransportError, match="no response"):
        asyncio.run(transport.bind(DEV, 1, "coordinator", ["genOnOff"]))
    assert transport._pending == {}


def test_publish_failure_raises_transport_error():
    client = _paho(rc=4)
    transport = _transport(client)
    with pytest.raises(TransportError, match="not published"):
        asyncio.run(transport.configure_reporting(DEV, 1, "genOnOff", "onOff", 0, 3600, 0))
