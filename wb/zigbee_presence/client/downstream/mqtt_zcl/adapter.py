#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

import paho.mqtt.client as paho_mqtt

from wb.zigbee_presence.lib.errors import TransportError

from ...bridge.config_loader import GatewayConfig, MqttConnectionConfig
from ..base import InboundHandler, Transport
from ..models import AttributeKey, WireValue
from .codec import GatewayCodec, GatewayResponse, attribute_key_to_json

logger = logging.getLogger(__name__)


class MqttZclTransport(Transport):
    """
    Zigbee transport talking to a ZCL gateway over MQTT using paho-mqtt

    Topics (per device ieee address):
      - <prefix>/<ieee>/request   requests published by us
      - <prefix>/<ieee>/response  responses matched by request id
      - <prefix>/<ieee>/report    attribute reports and read responses

    paho callbacks run in the paho network thread; responses and reports
    are handed over to the asyncio loop with call_soon_threadsafe()

    Notes:
      - In tests we inject a mocked paho client via `client=...`
      - In production we create the client automatically
    """

    def __init__(
        self,
        *,
        cfg: MqttConnectionConfig,
        gateway: GatewayConfig,
        client: Optional[Any] = None,
        codec: Optional[GatewayCodec] = None,
    ) -> None:
        self._cfg = cfg
        self._gateway = gateway
        self._codec = codec or GatewayCodec()
        self._handler: Optional[InboundHandler] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ids = itertools.count(1)
        self._pending: Dict[int, asyncio.Future] = {}

        if client is None:
            self._client = paho_mqtt.Client(
                paho_mqtt.CallbackAPIVersion.VERSION2,
                client_id=cfg.client_id or "",
            )
        else:
            self._client = client

        # Configure auth if provided
        if cfg.username:
            self._client.username_pw_set(cfg.username, cfg.password)

        # Callbacks
        self._client.on_connect = self._on_connect
        self._client.on_message = self._on_message
        self._client.on_disconnect = self._on_disconnect

    @property
    def transport_name(self) -> str:
        return "mqtt_zcl"

    @property
    def subscriptions(self) -> Sequence[str]:
        prefix = self._gateway.prefix
        return (f"{prefix}/+/response", f"{prefix}/+/report")

    def start(self, handler: InboundHandler) -> None:
        self._handler = handler
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
        logger.info(
            "Starting ZCL gateway transport: host=%s port=%s prefix=%s",
            self._cfg.host,
            self._cfg.port,
            self._gateway.prefix,
        )
        self._client.connect(self._cfg.host, self._cfg.port, keepalive=self._cfg.keepalive)
        for topic in self.subscriptions:
            self._client.subscribe(topic)
        # Start network loop in background thread
        self._client.loop_start()

    def stop(self) -> None:
        logger.info("Stopping ZCL gateway transport")
        try:
            self._client.loop_stop()
        finally:
            try:
                self._client.disconnect()
            except Exception:
                logger.exception("MQTT disconnect failed")
        for fut in self._pending.values():
            if not fut.done():
                fut.set_exception(TransportError("Transport stopped"))
        self._pending.clear()

    # ---- wire operations ----

    async def bind(self, device_id: str, endpoint_id: int, target: str, clusters: Sequence[str]) -> None:
        await self._request(device_id, "bind", endpoint_id, {"target": target, "clusters": list(clusters)})

    async def read(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        attributes: Sequence[AttributeKey],
    ) -> Dict[AttributeKey, Any]:
        body = {"cluster": cluster, "attributes": [attribute_key_to_json(a) for a in attributes]}
        return await self._request(device_id, "read", endpoint_id, body)

    async def write(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        attributes: Mapping[AttributeKey, WireValue],
    ) -> None:
        body = {"cluster": cluster, "attributes": self._codec.attributes_body(attributes)}
        await self._request(device_id, "write", endpoint_id, body)

    async def command(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        command: str,
        payload: Mapping[str, Any],
        options: Mapping[str, Any],
    ) -> None:
        body = {"cluster": cluster, "command": command, "payload": dict(payload), "options": dict(options)}
        await self._request(device_id, "command", endpoint_id, body)

    async def configure_reporting(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        attribute: AttributeKey,
        min_interval: int,
        max_interval: int,
        reportable_change: int,
    ) -> None:
        body = {
            "cluster": cluster,
            "attribute": attribute_key_to_json(attribute),
            "min": min_interval,
            "max": max_interval,
            "change": reportable_change,
        }
        await self._request(device_id, "configure_reporting", endpoint_id, body)

    async def _request(self, device_id: str, op: str, endpoint_id: int, body: Mapping[str, Any]) -> Dict[AttributeKey, Any]:
        self._loop = asyncio.get_running_loop()
        request_id = next(self._ids)
        fut = self._loop.create_future()
        self._pending[request_id] = fut
        topic = f"{self._gateway.prefix}/{device_id}/request"
        payload = self._codec.encode_request(request_id, op, endpoint_id, body)
        try:
            logger.debug("MQTT publish: topic=%s payload=%r", topic, payload)
            info = self._client.publish(topic, payload=payload, qos=self._cfg.qos)
            if info.rc != paho_mqtt.MQTT_ERR_SUCCESS:
                raise TransportError(f"{op} to {device_id}/{endpoint_id} not published: rc={info.rc}")
            try:
                return await asyncio.wait_for(fut, self._gateway.response_timeout)
            except asyncio.TimeoutError as e:
                raise TransportError(f"{op} to {device_id}/{endpoint_id}: no response") from e
        finally:
            self._pending.pop(request_id, None)

    def _resolve(self, response: GatewayResponse) -> None:
        fut = self._pending.get(response.request_id)
        if fut is None or fut.done():
            logger.debug("Response for unknown request id=%s", response.request_id)
            return
        if response.ok:
            fut.set_result(response.data)
        else:
            fut.set_exception(TransportError(response.error or "request failed"))

    def _dispatch(self, fn: Any, *args: Any) -> None:
        if self._loop is None:
            fn(*args)
        else:
            self._loop.call_soon_threadsafe(fn, *args)

    # ---- paho callbacks ----

    def _on_connect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None) -> None:
        logger.info("MQTT connected: rc=%s", reason_code)
        for topic in self.subscriptions:
            try:
                client.subscribe(topic)
            except Exception:
                logger.exception("MQTT subscribe failed: %s", topic)

    def _on_disconnect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None) -> None:
        logger.warning("MQTT disconnected: rc=%s", reason_code)

    def _on_message(self, client: Any, userdata: Any, msg: Any) -> None:
        topic = str(getattr(msg, "topic", ""))
        parts = topic.rsplit("/", 2)
        if len(parts) != 3 or parts[0] != self._gateway.prefix:
            logger.debug("Ignoring message on %s", topic)
            return
        _, device_id, kind = parts
        try:
            if kind == "response":
                self._dispatch(self._resolve, self._codec.decode_response(msg.payload))
            elif kind == "report" and self._handler is not None:
                self._dispatch(self._handler, self._codec.decode_report(device_id, msg.payload))
        except ValueError as e:
            logger.warning("Bad gateway message on %s: %r", topic, e)
