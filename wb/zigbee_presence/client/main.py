#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import asyncio
import contextlib
import logging
import signal
from typing import Any, Dict

from wb.zigbee_presence.lib.constants import CONFIG_PATH
from wb.zigbee_presence.lib.errors import PresenceSensorError

from .bridge.config_loader import AppConfig, load_config, parse_config
from .bridge.device_registry import DeviceRegistry
from .device.models import Device
from .downstream.mqtt_zcl.adapter import MqttZclTransport
from .router import Router
from .upstream.mqtt_state.adapter import MqttStateUpstream

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_router(app_cfg: AppConfig) -> Router:
    devreg = DeviceRegistry.from_config(app_cfg.raw)
    transport = MqttZclTransport(cfg=app_cfg.mqtt, gateway=app_cfg.gateway)
    return Router(devreg=devreg, transport=transport)


def wire_upstream(router: Router, upstream: MqttStateUpstream) -> None:
    """Connect application requests and state publishing to the router"""

    def _device_id(friendly_name: str) -> str:
        device = router.devreg.by_name(friendly_name) or router.devreg.get_device(friendly_name)
        if device is None:
            raise PresenceSensorError(f"Unknown device {friendly_name!r}")
        return device.device_id

    async def on_set(friendly_name: str, key: str, value: Any) -> Dict[str, Any]:
        return await router.set(_device_id(friendly_name), key, value)

    async def on_get(friendly_name: str, key: str) -> None:
        await router.get(_device_id(friendly_name), key)

    def publish(device: Device, state: Dict[str, Any]) -> None:
        upstream.publish_state(device.friendly_name, state)

    upstream.register_set_handler(on_set)
    upstream.register_get_handler(on_get)
    router.publisher = publish


async def run(config_path: str = CONFIG_PATH) -> None:
    app_cfg = parse_config(load_config(config_path).raw)
    setup_logging(app_cfg.log_level)

    router = build_router(app_cfg)
    upstream = MqttStateUpstream(cfg=app_cfg.mqtt, upstream=app_cfg.upstream)
    wire_upstream(router, upstream)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    logger.info("Starting with %d device(s)", len(router.devreg.devices))
    await upstream.start()
    if not await upstream.wait_ready(timeout=10.0):
        logger.warning("Upstream broker not ready yet, state publishing may be delayed")
    router.transport.start(router.on_inbound_event)
    try:
        if app_cfg.gateway.configure_on_start:
            for device_id in list(router.devreg.devices):
                try:
                    await router.configure(device_id, app_cfg.gateway.coordinator)
                except PresenceSensorError as e:
                    logger.error("[%s] Configure failed: %s", device_id, e)
        await stop_event.wait()
    finally:
        logger.info("Stopping...")
        router.transport.stop()
        await upstream.stop()
        logger.info("Shutdown complete.")


def main(config_path: str = CONFIG_PATH) -> None:
    try:
        asyncio.run(run(config_path))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
