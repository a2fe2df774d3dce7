#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Static capability table, endpoint arena and endpoint routing
for the Presence_Sensor_v2.6 device
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from wb.zigbee_presence.lib.constants import (
    ATTR_DST_END,
    ATTR_DST_START,
    ATTR_ILLUMINANCE_THRESHOLD,
    ATTR_LED_MODE,
    ATTR_LOCAL_TIME,
    ATTR_MEASURED_VALUE,
    ATTR_MEASUREMENT_PERIOD,
    ATTR_OCCUPANCY,
    ATTR_ON_OFF,
    ATTR_TARGET_DISTANCE,
    ATTR_TARGET_TYPE,
    CLUSTER_ILLUMINANCE,
    CLUSTER_OCCUPANCY,
    CLUSTER_ON_OFF,
    CLUSTER_TIME,
    FIRST_ENDPOINT,
    INVALID_ENDPOINT,
    SECOND_ENDPOINT,
    THIRD_ENDPOINT,
    Access,
    DataType,
)
from wb.zigbee_presence.lib.errors import RoutingError

from .codecs import LED_MODE, TARGET_TYPE
from .models import Capability, Endpoint, WireAttribute

ENDPOINTS: Dict[int, Endpoint] = {
    FIRST_ENDPOINT: Endpoint(
        FIRST_ENDPOINT,
        (CLUSTER_ON_OFF, CLUSTER_TIME, CLUSTER_OCCUPANCY, CLUSTER_ILLUMINANCE),
        "Sensor",
    ),
    SECOND_ENDPOINT: Endpoint(SECOND_ENDPOINT, (CLUSTER_ON_OFF,), "Day output"),
    THIRD_ENDPOINT: Endpoint(THIRD_ENDPOINT, (CLUSTER_ON_OFF,), "Night output"),
}

_STATE_READ = Access.STATE | Access.READ


def _binary(name: str, access: int, description: str) -> Capability:
    return Capability(name, access, "binary", description, value_on="ON", value_off="OFF")


_CAPABILITY_LIST: List[Capability] = [
    Capability("occupancy", Access.STATE, "binary", "Indicates whether the device detected occupancy",
               value_on=True, value_off=False),
    Capability("illuminance_raw", Access.STATE, "numeric", "Measured illuminance for threshold"),
    Capability("illuminance", Access.STATE, "numeric", "Measured illuminance in lux", unit="lx"),
    Capability("illuminance_threshold", Access.ALL, "numeric", "Illuminance threshold",
               value_min=0, value_max=50000),
    Capability("local_time", _STATE_READ, "text", "Current time"),
    Capability("min_time", Access.ALL, "text", "Day start"),
    Capability("max_time", Access.ALL, "text", "Day end"),
    Capability("led_mode", Access.ALL, "enum", "Led working mode", values=LED_MODE.labels),
    Capability("target_distance", Access.STATE, "numeric", "Movement target distance", unit="cm"),
    Capability("target_type", Access.STATE, "enum", "Target type", values=TARGET_TYPE.labels),
    Capability("measurement_period", Access.ALL, "numeric", "Distance measurement period", unit="sec",
               value_min=0, value_max=0xFFFF),
    _binary("sensor", Access.ALL, "Enable sensor"),
    _binary("day_output", _STATE_READ, "Day binding output"),
    _binary("night_output", _STATE_READ, "Night binding output"),
]

CAPABILITIES: Dict[str, Capability] = {cap.name: cap for cap in _CAPABILITY_LIST}

# Boolean outputs, one per endpoint
_ON_OFF_ROUTES: Dict[str, int] = {
    "sensor": FIRST_ENDPOINT,
    "day_output": SECOND_ENDPOINT,
    "night_output": THIRD_ENDPOINT,
}
_ON_OFF_BY_ENDPOINT: Dict[int, str] = {ep: key for key, ep in _ON_OFF_ROUTES.items()}


def endpoint_for(key: str) -> int:
    """
    Endpoint owning an on/off capability

    Returns INVALID_ENDPOINT (0) for any other key; callers must treat it
    as a routing failure

    Examples:
        >>> endpoint_for("night_output")
        3
        >>> endpoint_for("no_such_key")
        0
    """
    return _ON_OFF_ROUTES.get(key, INVALID_ENDPOINT)


def on_off_capability_for(endpoint_id: int) -> Optional[str]:
    """Reverse of endpoint_for(): capability reported by an endpoint's on/off cluster"""
    return _ON_OFF_BY_ENDPOINT.get(endpoint_id)


def _on_off_attribute(key: str) -> WireAttribute:
    return WireAttribute(CLUSTER_ON_OFF, ATTR_ON_OFF, endpoint_for(key), DataType.BOOLEAN, "onOff")


# Wire attribute(s) backing each capability
ATTRIBUTES: Dict[str, Tuple[WireAttribute, ...]] = {
    "occupancy": (
        WireAttribute(CLUSTER_OCCUPANCY, ATTR_OCCUPANCY, FIRST_ENDPOINT, DataType.BITMAP8, "occupancy"),
    ),
    "illuminance_raw": (
        WireAttribute(CLUSTER_ILLUMINANCE, ATTR_MEASURED_VALUE, FIRST_ENDPOINT, DataType.UINT16, "measuredValue"),
    ),
    "illuminance_threshold": (
        WireAttribute(CLUSTER_ILLUMINANCE, ATTR_ILLUMINANCE_THRESHOLD, FIRST_ENDPOINT, DataType.UINT16),
    ),
    "local_time": (
        WireAttribute(CLUSTER_TIME, ATTR_LOCAL_TIME, FIRST_ENDPOINT, DataType.UINT32, "localTime"),
    ),
    "min_time": (
        WireAttribute(CLUSTER_TIME, ATTR_DST_START, FIRST_ENDPOINT, DataType.UINT32, "dstStart"),
    ),
    "max_time": (
        WireAttribute(CLUSTER_TIME, ATTR_DST_END, FIRST_ENDPOINT, DataType.UINT32, "dstEnd"),
    ),
    "led_mode": (
        WireAttribute(CLUSTER_ON_OFF, ATTR_LED_MODE, THIRD_ENDPOINT, DataType.ENUM8),
    ),
    "target_distance": (
        WireAttribute(CLUSTER_OCCUPANCY, ATTR_TARGET_DISTANCE, FIRST_ENDPOINT),
    ),
    "target_type": (
        WireAttribute(CLUSTER_OCCUPANCY, ATTR_TARGET_TYPE, FIRST_ENDPOINT, DataType.ENUM8),
    ),
    "measurement_period": (
        WireAttribute(CLUSTER_OCCUPANCY, ATTR_MEASUREMENT_PERIOD, FIRST_ENDPOINT, DataType.UINT16),
    ),
    "sensor": (_on_off_attribute("sensor"),),
    "day_output": (_on_off_attribute("day_output"),),
    "night_output": (_on_off_attribute("night_output"),),
}
ATTRIBUTES["illuminance"] = ATTRIBUTES["illuminance_raw"]


def get_capability(key: str) -> Capability:
    """Return Capability by key or raise RoutingError"""
    cap = CAPABILITIES.get(key)
    if cap is None:
        raise RoutingError(key)
    return cap


def attribute_for(key: str) -> WireAttribute:
    """Single wire attribute backing a capability, RoutingError if unknown"""
    attrs = ATTRIBUTES.get(key)
    if not attrs:
        raise RoutingError(key)
    return attrs[0]
