#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import json
import logging
from concurrent.futures import Future
from typing import Any, Dict, Optional

import paho.mqtt.client as paho_mqtt

from wb.zigbee_presence.lib.errors import PresenceSensorError, TransportError

from ...bridge.config_loader import MqttConnectionConfig, UpstreamConfig
from ..base import BaseUpstreamAdapter
from ..types import RequestAction, UpstreamState

logger = logging.getLogger(__name__)


class MqttStateUpstream(BaseUpstreamAdapter):
    """
    Application-side adapter using zigbee2mqtt style topics

      - <base>/<name>       merged state JSON, published by us
      - <base>/<name>/set   {"led_mode": "Night", "sensor": "ON"}
      - <base>/<name>/get   {"min_time": ""} or "min_time"

    Requests are executed on the asyncio loop captured by start(); a
    rejected request is logged and leaves the published state untouched
    """

    def __init__(
        self,
        *,
        cfg: MqttConnectionConfig,
        upstream: UpstreamConfig,
        client: Optional[Any] = None,
    ) -> None:
        super().__init__()
        self._cfg = cfg
        self._upstream = upstream
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        if client is None:
            client_id = f"{cfg.client_id}-upstream" if cfg.client_id else ""
            self._client = paho_mqtt.Client(paho_mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        else:
            self._client = client

        if cfg.username:
            self._client.username_pw_set(cfg.username, cfg.password)

        self._client.on_connect = self._on_connect
        self._client.on_message = self._on_message
        self._client.on_disconnect = self._on_disconnect

    @property
    def subscriptions(self):
        base = self._upstream.base_topic
        return tuple(f"{base}/+/{action.value}" for action in RequestAction)

    async def start(self) -> None:
        if self._state not in (UpstreamState.INITIALIZING, UpstreamState.STOPPED):
            logger.warning("MqttStateUpstream already started")
            return
        self._loop = asyncio.get_running_loop()
        logger.info("Starting upstream: host=%s base=%s", self._cfg.host, self._upstream.base_topic)
        self._client.connect(self._cfg.host, self._cfg.port, keepalive=self._cfg.keepalive)
        for topic in self.subscriptions:
            self._client.subscribe(topic)
        self._client.loop_start()

    async def stop(self) -> None:
        logger.info("Stopping upstream")
        try:
            self._client.loop_stop()
        finally:
            try:
                self._client.disconnect()
            except Exception:
                logger.exception("MQTT disconnect failed")
        self._set_state(UpstreamState.STOPPED)

    def publish_state(self, friendly_name: str, state: Dict[str, Any]) -> None:
        topic = f"{self._upstream.base_topic}/{friendly_name}"
        payload = json.dumps(state, sort_keys=True)
        logger.debug("MQTT publish: topic=%s payload=%s", topic, payload)
        self._client.publish(topic, payload=payload, qos=self._cfg.qos, retain=self._upstream.retain)

    async def handle_request(self, friendly_name: str, action: str, raw: Any) -> Dict[str, Any]:
        """
        Execute a set/get request payload

        Keys are processed in payload order; a failing key is logged and
        the remaining keys are still processed. Returns merged set echoes
        """
        request = _parse_request(raw)
        echo: Dict[str, Any] = {}
        for key, value in request.items():
            try:
                if action == RequestAction.SET:
                    echo.update(await self._handle_incoming_set(friendly_name, key, value))
                elif action == RequestAction.GET:
                    await self._handle_incoming_get(friendly_name, key)
                else:
                    logger.debug("Unsupported action %r", action)
                    return echo
            except TransportError as e:
                logger.error("[%s] %s %s failed: %s", friendly_name, action, key, e)
            except PresenceSensorError as e:
                logger.warning("[%s] %s %s rejected: %s", friendly_name, action, key, e)
        return echo

    # ---- paho callbacks ----

    def _on_connect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None) -> None:
        logger.info("Upstream MQTT connected: rc=%s", reason_code)
        for topic in self.subscriptions:
            try:
                client.subscribe(topic)
            except Exception:
                logger.exception("MQTT subscribe failed: %s", topic)
        self._set_state(UpstreamState.READY)

    def _on_disconnect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None) -> None:
        logger.warning("Upstream MQTT disconnected: rc=%s", reason_code)
        if self._state != UpstreamState.STOPPED:
            self._set_state(UpstreamState.UNAVAILABLE)

    def _on_message(self, client: Any, userdata: Any, msg: Any) -> None:
        topic = str(getattr(msg, "topic", ""))
        base = self._upstream.base_topic
        if not topic.startswith(base + "/"):
            return
        parts = topic[len(base) + 1:].rsplit("/", 1)
        if len(parts) != 2 or parts[1] not in {a.value for a in RequestAction}:
            return
        if self._loop is None:
            logger.warning("Upstream request on %s before start()", topic)
            return
        fut = asyncio.run_coroutine_threadsafe(
            self.handle_request(parts[0], RequestAction(parts[1]), msg.payload), self._loop
        )
        fut.add_done_callback(_log_failure)


def _parse_request(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    text = str(raw).strip()
    try:
        data = json.loads(text)
    except ValueError:
        # Bare key, e.g. "min_time" on a get topic
        return {text: ""} if text else {}
    if isinstance(data, dict):
        return data
    if isinstance(data, str):
        return {data: ""}
    logger.warning("Unsupported request payload %r", raw)
    return {}


def _log_failure(fut: Future) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        logger.error("Upstream request failed: %r", exc)
