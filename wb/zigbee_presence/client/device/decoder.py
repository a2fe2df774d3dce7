#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Sequence

from wb.zigbee_presence.lib.constants import (
    CLUSTER_ILLUMINANCE,
    CLUSTER_OCCUPANCY,
    CLUSTER_ON_OFF,
    CLUSTER_TIME,
    ReportKind,
)

from ..downstream.models import InboundEvent
from .capabilities import ATTRIBUTES, on_off_capability_for
from .codecs import LED_MODE, TARGET_TYPE, decode_illuminance, decode_time

logger = logging.getLogger(__name__)

Converter = Callable[[InboundEvent], Dict[str, Any]]

_BOTH = frozenset({ReportKind.ATTRIBUTE_REPORT, ReportKind.READ_RESPONSE})
_READ_ONLY = frozenset({ReportKind.READ_RESPONSE})


@dataclass(frozen=True)
class FromZigbee:
    """Converter for one cluster and the message kinds it handles"""

    name: str
    cluster: str
    kinds: FrozenSet[str]
    convert: Converter


def _on_off(event: InboundEvent) -> Dict[str, Any]:
    key = on_off_capability_for(event.endpoint_id)
    if key is None:
        logger.debug("On/off report from unmapped endpoint %s", event.endpoint_id)
        return {}
    present, value = ATTRIBUTES[key][0].lookup(event.data)
    if not present:
        return {}
    return {key: "ON" if value == 1 else "OFF"}


def _illuminance(event: InboundEvent) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    present, value = ATTRIBUTES["illuminance_threshold"][0].lookup(event.data)
    if present:
        result["illuminance_threshold"] = value
    present, raw = ATTRIBUTES["illuminance_raw"][0].lookup(event.data)
    if present:
        result["illuminance"] = decode_illuminance(raw)
        result["illuminance_raw"] = raw
    return result


def _time_config(event: InboundEvent) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key in ("min_time", "max_time"):
        present, value = ATTRIBUTES[key][0].lookup(event.data)
        if present:
            result[key] = decode_time(value)
    return result


def _local_time(event: InboundEvent) -> Dict[str, Any]:
    present, value = ATTRIBUTES["local_time"][0].lookup(event.data)
    if not present:
        return {}
    return {"local_time": decode_time(value)}


def _led_mode(event: InboundEvent) -> Dict[str, Any]:
    present, value = ATTRIBUTES["led_mode"][0].lookup(event.data)
    if not present:
        return {}
    return {"led_mode": LED_MODE.decode(value)}


def _distance(event: InboundEvent) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    present, value = ATTRIBUTES["target_distance"][0].lookup(event.data)
    if present:
        result["target_distance"] = value
    present, value = ATTRIBUTES["target_type"][0].lookup(event.data)
    if present:
        result["target_type"] = TARGET_TYPE.decode(value)
    present, value = ATTRIBUTES["measurement_period"][0].lookup(event.data)
    if present:
        result["measurement_period"] = value
    return result


def _occupancy(event: InboundEvent) -> Dict[str, Any]:
    present, value = ATTRIBUTES["occupancy"][0].lookup(event.data)
    if not present:
        return {}
    # bit 0 of the occupancy bitmap
    return {"occupancy": int(value) % 2 > 0}


FROM_ZIGBEE: List[FromZigbee] = [
    FromZigbee("on_off", CLUSTER_ON_OFF, _BOTH, _on_off),
    FromZigbee("occupancy", CLUSTER_OCCUPANCY, _BOTH, _occupancy),
    FromZigbee("illuminance", CLUSTER_ILLUMINANCE, _BOTH, _illuminance),
    FromZigbee("time_config", CLUSTER_TIME, _READ_ONLY, _time_config),
    FromZigbee("local_time", CLUSTER_TIME, _BOTH, _local_time),
    FromZigbee("led_mode", CLUSTER_ON_OFF, _READ_ONLY, _led_mode),
    FromZigbee("distance", CLUSTER_OCCUPANCY, _BOTH, _distance),
]


class InboundDecoder:
    """
    Turns InboundEvent into a partial capability state

    Converters are indexed by cluster once at construction. decode() never
    raises: a converter failing on an unexpected value type is logged and
    its keys are skipped; an event without relevant attributes yields {}
    """

    def __init__(self, converters: Sequence[FromZigbee] = FROM_ZIGBEE) -> None:
        self._by_cluster: Dict[str, List[FromZigbee]] = {}
        for conv in converters:
            self._by_cluster.setdefault(conv.cluster, []).append(conv)

    def decode(self, event: InboundEvent) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for conv in self._by_cluster.get(event.cluster, []):
            if event.kind not in conv.kinds:
                continue
            try:
                result.update(conv.convert(event))
            except (TypeError, ValueError, ArithmeticError) as e:
                logger.warning(
                    "[%s] %s converter rejected payload %r: %r",
                    event.device_id,
                    conv.name,
                    dict(event.data),
                    e,
                )
        return result
