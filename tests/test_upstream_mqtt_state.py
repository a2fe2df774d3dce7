#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from wb.zigbee_presence.client.bridge.config_loader import MqttConnectionConfig, UpstreamConfig
from wb.zigbee_presence.client.bridge.device_registry import DeviceRegistry
from wb.zigbee_presence.client.downstream.file_replay.adapter import FileReplayConfig, FileReplayTransport
from wb.zigbee_presence.client.downstream.models import InboundEvent
from wb.zigbee_presence.client.main import wire_upstream
from wb.zigbee_presence.client.router import Router
from wb.zigbee_presence.client.upstream import UpstreamState
from wb.zigbee_presence.client.upstream.mqtt_state.adapter import MqttStateUpstream
from wb.zigbee_presence.lib.errors import TransportError

DEV = "0x00124b0029a1b2c3"


class FailingTransport(FileReplayTransport):
    async def write(self, *args, **kwargs):
        raise TransportError("no ack")


def _upstream(client=None) -> MqttStateUpstream:
    return MqttStateUpstream(
        cfg=MqttConnectionConfig(host="localhost", port=1883),
        upstream=UpstreamConfig(base_topic="zigbee2mqtt", retain=True),
        client=client or MagicMock(),
    )


def _wired(transport=None):
    devreg = DeviceRegistry.from_config({"devices": [{"ieee": DEV, "friendly_name": "hall"}]})
    transport = transport or FileReplayTransport(cfg=FileReplayConfig(path="unused.json"))
    router = Router(devreg=devreg, transport=transport)
    client = MagicMock()
    upstream = _upstream(client)
    wire_upstream(router, upstream)
    return router, upstream, client, transport


def test_publish_state_is_sorted_json_with_retain():
    client = MagicMock()
    upstream = _upstream(client)
    upstream.publish_state("hall", {"sensor": "ON", "led_mode": "Night"})
    client.publish.assert_called_once_with(
        "zigbee2mqtt/hall",
        payload='{"led_mode": "Night", "sensor": "ON"}',
        qos=0,
        retain=True,
    )


def test_inbound_event_published_under_friendly_name():
    router, _, client, _ = _wired()
    router.on_inbound_event(
        InboundEvent(device_id=DEV, cluster="msOccupancySensing", kind="attributeReport", endpoint_id=1, data={"occupancy": 1})
    )
    topic = client.publish.call_args.args[0]
    assert topic == "zigbee2mqtt/hall"
    assert json.loads(client.publish.call_args.kwargs["payload"]) == {"occupancy": True}


def test_set_request_processes_every_key():
    router, upstream, client, transport = _wired()

    echo = asyncio.run(
        upstream.handle_request("hall", "set", b'{"min_time": "08:00", "sensor": "purple", "led_mode": "Never"}')
    )

    # invalid sensor value is rejected, the other keys still go out
    assert echo == {"min_time": "08:00", "led_mode": "Never"}
    assert len(transport.operations) == 2
    assert router.state(DEV) == {"min_time": "08:00", "led_mode": "Never"}
    assert json.loads(client.publish.call_args.kwargs["payload"]) == {"min_time": "08:00", "led_mode": "Never"}


def test_set_request_with_transport_failure_keeps_state():
    router, upstream, client, _ = _wired(FailingTransport(cfg=FileReplayConfig(path="unused.json")))
    echo = asyncio.run(upstream.handle_request("hall", "set", '{"illuminance_threshold": 500}'))
    assert echo == {}
    assert router.state(DEV) == {}
    client.publish.assert_not_called()


@pytest.mark.parametrize("payload", [b"min_time", b'"min_time"', b'{"min_time": ""}'])
def test_get_request_payload_forms(payload):
    _, upstream, _, transport = _wired()
    asyncio.run(upstream.handle_request("hall", "get", payload))
    assert len(transport.operations) == 1


def test_request_for_ieee_address_and_unknown_device():
    _, upstream, _, transport = _wired()
    asyncio.run(upstream.handle_request(DEV, "set", '{"sensor": "off"}'))
    asyncio.run(upstream.handle_request("porch", "set", '{"sensor": "off"}'))
    assert len(transport.operations) == 1


def test_on_message_requires_started_loop():
    client = MagicMock()
    upstream = _upstream(client)
    handler = MagicMock()
    upstream.register_set_handler(handler)

    msg = MagicMock()
    msg.topic = "zigbee2mqtt/hall/set"
    msg.payload = b'{"sensor": "ON"}'
    upstream._on_message(client, None, msg)

    handler.assert_not_called()


def test_lifecycle_states():
    client = MagicMock()
    upstream = _upstream(client)
    assert upstream.state == UpstreamState.INITIALIZING

    async def scenario():
        await upstream.start()
        upstream._on_connect(client, None, None, 0)
        assert upstream.state == UpstreamState.READY
        upstream._on_disconnect(client, None, None, 7)
        assert upstream.state == UpstreamState.UNAVAILABLE
        await upstream.stop()

    asyncio.run(scenario())
    assert upstream.state == UpstreamState.STOPPED
    client.subscribe.assert_any_call("zigbee2mqtt/+/set")
    client.subscribe.assert_any_call("zigbee2mqtt/+/get")
    client.loop_stop.assert_called_once()


def test_wait_ready_times_out_and_returns_on_ready():
    client = MagicMock()
    upstream = _upstream(client)

    async def scenario():
        assert await upstream.wait_ready(timeout=0.05) is False
        upstream._on_connect(client, None, None, 0)
        assert await upstream.wait_ready(timeout=0.05) is True

    asyncio.run(scenario())


def test_set_request_with_huge_number_keeps_processing_keys():
    router, upstream, _, transport = _wired()
    raw = '{"illuminance_threshold": 1' + "0" * 400 + ', "min_time": "08:00"}'
    echo = asyncio.run(upstream.handle_request("hall", "set", raw))
    assert echo == {"min_time": "08:00"}
    assert len(transport.operations) == 1
    assert router.state(DEV) == {"min_time": "08:00"}
