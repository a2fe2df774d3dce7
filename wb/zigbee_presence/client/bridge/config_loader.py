#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedConfig:
    """
    Thin wrapper over loaded JSON.

    Example (output):
        LoadedConfig(raw={...full config dict...})
    """
    raw: Dict[str, Any]


@dataclass(frozen=True)
class MqttConnectionConfig:
    """
    MQTT connection settings for paho-mqtt client
    """

    host: str = "localhost"
    port: int = 1883
    client_id: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    keepalive: int = 60
    qos: int = 0


@dataclass(frozen=True)
class GatewayConfig:
    """
    Zigbee gateway settings

      - prefix: MQTT topic prefix of the ZCL gateway
      - coordinator: bind target used by configure
      - response_timeout: seconds to wait for a gateway response
      - configure_on_start: run configure sequence for every device at start
    """

    prefix: str = "zcl"
    coordinator: str = "coordinator"
    response_timeout: float = 10.0
    configure_on_start: bool = False


@dataclass(frozen=True)
class UpstreamConfig:
    base_topic: str = "zigbee2mqtt"
    retain: bool = True


@dataclass(frozen=True)
class AppConfig:
    mqtt: MqttConnectionConfig
    gateway: GatewayConfig
    upstream: UpstreamConfig
    log_level: str
    raw: Dict[str, Any]


def load_config(path: str) -> LoadedConfig:
    """
    Load JSON config from disk.

    Input:
      path: path to JSON file.

    Output:
      LoadedConfig with .raw containing parsed dict.

    Example:
      cfg = load_config("/etc/wb-zigbee-presence.conf").raw
      devices = cfg["devices"]
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must contain a JSON object")
    return LoadedConfig(raw=data)


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section {name!r} must be an object")
    return value


def parse_config(cfg: Dict[str, Any]) -> AppConfig:
    """
    Build typed settings from raw config; unknown keys are ignored

    Input (fragment):
        {
          "mqtt": {"host": "localhost", "port": 1883},
          "gateway": {"prefix": "zcl", "coordinator": "0x00124b0001020304"},
          "upstream": {"base_topic": "zigbee2mqtt"},
          "devices": [{"ieee": "0x00124b0029a1b2c3", "friendly_name": "hall"}],
          "log_level": "INFO"
        }
    """
    mqtt = _section(cfg, "mqtt")
    gateway = _section(cfg, "gateway")
    upstream = _section(cfg, "upstream")
    try:
        return AppConfig(
            mqtt=MqttConnectionConfig(
                host=str(mqtt.get("host", "localhost")),
                port=int(mqtt.get("port", 1883)),
                client_id=mqtt.get("client_id"),
                username=mqtt.get("username"),
                password=mqtt.get("password"),
                keepalive=int(mqtt.get("keepalive", 60)),
                qos=int(mqtt.get("qos", 0)),
            ),
            gateway=GatewayConfig(
                prefix=str(gateway.get("prefix", "zcl")).rstrip("/"),
                coordinator=str(gateway.get("coordinator", "coordinator")),
                response_timeout=float(gateway.get("response_timeout", 10.0)),
                configure_on_start=bool(gateway.get("configure_on_start", False)),
            ),
            upstream=UpstreamConfig(
                base_topic=str(upstream.get("base_topic", "zigbee2mqtt")).rstrip("/"),
                retain=bool(upstream.get("retain", True)),
            ),
            log_level=str(cfg.get("log_level", "INFO")).upper(),
            raw=cfg,
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid config value: {e}") from e
