#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from wb.zigbee_presence.lib.constants import MODEL_ID

from ..device.capabilities import ENDPOINTS
from ..device.models import Device


@dataclass
class DeviceRegistry:
    """
    Builds Device objects from config.devices.

    This registry does NOT depend on any transport.

    Output index:
      devices[device_id] -> Device
      names[friendly_name] -> device_id

    Example:
      cfg = {...}
      devreg = DeviceRegistry.from_config(cfg)
      devreg.get_device("0x00124b0029a1b2c3") -> Device(...)
      devreg.by_name("hall_presence") -> Device(...)
    """

    devices: Dict[str, Device]
    names: Dict[str, str]

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "DeviceRegistry":
        """
        Parse config["devices"].

        Input (fragment):
            {
              "devices": [
                {"ieee": "0x00124b0029a1b2c3", "friendly_name": "hall_presence"}
              ]
            }

        friendly_name defaults to the ieee address. Duplicate ieee addresses
        or names raise ValueError.
        """
        devices: Dict[str, Device] = {}
        names: Dict[str, str] = {}

        for i, dev in enumerate(cfg.get("devices", []) or []):
            device_id = dev.get("ieee")
            if not isinstance(device_id, str) or not device_id:
                raise ValueError(f"devices[{i}].ieee must be a non-empty string")
            name = str(dev.get("friendly_name") or device_id)
            if device_id in devices:
                raise ValueError(f"devices[{i}]: duplicate ieee {device_id!r}")
            if name in names:
                raise ValueError(f"devices[{i}]: duplicate friendly_name {name!r}")

            devices[device_id] = Device(
                device_id=device_id,
                friendly_name=name,
                endpoints=ENDPOINTS,
                model=str(dev.get("model", MODEL_ID)),
            )
            names[name] = device_id

        return cls(devices=devices, names=names)

    def get_device(self, device_id: str) -> Optional[Device]:
        """Return Device by ieee address or None if not found."""
        return self.devices.get(device_id)

    def by_name(self, friendly_name: str) -> Optional[Device]:
        device_id = self.names.get(friendly_name)
        if device_id is None:
            return None
        return self.devices.get(device_id)
