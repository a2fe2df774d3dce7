#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class DeviceState:
    """
    Capability values of one device, kept in two layers

      - confirmed: values decoded from device reports/read responses
      - pending:   optimistic echoes of writes not yet confirmed

    A confirmed update for a key drops the pending value of that key, so
    the device-reported value always wins once it arrives
    """

    confirmed: Dict[str, Any] = field(default_factory=dict)
    pending: Dict[str, Any] = field(default_factory=dict)

    def merged(self) -> Dict[str, Any]:
        out = dict(self.confirmed)
        out.update(self.pending)
        return out


@dataclass
class StateStore:
    """In-memory capability state store

    Stores capability values per device_id

    Structure:
      state[device_id] -> DeviceState

    We keep it intentionally simple:
    - no history
    - no persistence
    - updates are merged key by key, never replaced wholesale
    """

    state: Dict[str, DeviceState] = field(default_factory=dict)

    def attach(self, device_id: str) -> None:
        self.state.setdefault(device_id, DeviceState())

    def detach(self, device_id: str) -> None:
        self.state.pop(device_id, None)

    def apply_confirmed(self, device_id: str, update: Mapping[str, Any]) -> None:
        dev = self.state.setdefault(device_id, DeviceState())
        for key, value in update.items():
            dev.confirmed[key] = value
            dev.pending.pop(key, None)

    def apply_pending(self, device_id: str, update: Mapping[str, Any]) -> None:
        dev = self.state.setdefault(device_id, DeviceState())
        dev.pending.update(update)

    def get_value(self, device_id: str, key: str) -> Optional[Any]:
        dev = self.state.get(device_id)
        if dev is None:
            return None
        if key in dev.pending:
            return dev.pending[key]
        return dev.confirmed.get(key)

    def snapshot(self, device_id: str) -> Dict[str, Any]:
        """Merged view published to the application"""
        dev = self.state.get(device_id)
        if dev is None:
            return {}
        return dev.merged()
