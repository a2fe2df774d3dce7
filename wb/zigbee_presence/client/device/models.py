#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from wb.zigbee_presence.lib.constants import Access

from ..downstream.models import AttributeKey, WireOperation


@dataclass(frozen=True)
class Capability:
    """
    Application-facing property of the device

    Fields:
      - name: capability key, e.g. "illuminance_threshold"
      - access: Access bitmask (STATE | WRITE | READ)
      - kind: "binary", "numeric", "enum" or "text"
      - description: human readable description
      - unit: unit of numeric values, e.g. "lx", "cm", "sec"
      - value_min/value_max: numeric domain bounds
      - values: enum labels
      - value_on/value_off: binary pair

    Example:
        Capability(
            name="illuminance_threshold",
            access=Access.ALL,
            kind="numeric",
            description="Illuminance threshold",
            value_min=0,
            value_max=50000,
        )
    """

    name: str
    access: int
    kind: str
    description: str
    unit: Optional[str] = None
    value_min: Optional[int] = None
    value_max: Optional[int] = None
    values: Tuple[str, ...] = ()
    value_on: Any = None
    value_off: Any = None

    def has_access(self, flag: int) -> bool:
        return bool(self.access & flag)

    def as_dict(self) -> Dict[str, Any]:
        """Metadata form of the capability, omitting unset fields"""
        out: Dict[str, Any] = {
            "name": self.name,
            "type": self.kind,
            "access": self.access,
            "description": self.description,
        }
        if self.unit is not None:
            out["unit"] = self.unit
        if self.value_min is not None:
            out["value_min"] = self.value_min
        if self.value_max is not None:
            out["value_max"] = self.value_max
        if self.values:
            out["values"] = list(self.values)
        if self.kind == "binary":
            out["value_on"] = self.value_on
            out["value_off"] = self.value_off
        return out


@dataclass(frozen=True)
class WireAttribute:
    """
    ZCL attribute backing a capability

    name is the symbolic attribute name used by the stack for standard
    attributes; manufacturer-specific attributes have only a numeric id
    """

    cluster: str
    attr_id: int
    endpoint_id: int
    datatype: Optional[int] = None
    name: Optional[str] = None

    @property
    def key(self) -> AttributeKey:
        """Key used when addressing the attribute in wire requests"""
        return self.name if self.name is not None else self.attr_id

    def lookup(self, data: Mapping[AttributeKey, Any]) -> Tuple[bool, Any]:
        """Find the attribute in a payload keyed by name or numeric id"""
        if self.name is not None and self.name in data:
            return True, data[self.name]
        if self.attr_id in data:
            return True, data[self.attr_id]
        return False, None


@dataclass(frozen=True)
class Endpoint:
    """Logical sub-unit of the device with its bound clusters"""

    endpoint_id: int
    clusters: Tuple[str, ...]
    description: str = ""


@dataclass(frozen=True)
class Device:
    """
    Attached presence sensor

    endpoints is the arena of Endpoint records indexed by endpoint id
    """

    device_id: str
    friendly_name: str
    endpoints: Mapping[int, Endpoint]
    model: str = ""


@dataclass(frozen=True)
class EncodeResult:
    """Wire operations for one capability request plus the optimistic state echo"""

    operations: Tuple[WireOperation, ...]
    state: Dict[str, Any] = field(default_factory=dict)
