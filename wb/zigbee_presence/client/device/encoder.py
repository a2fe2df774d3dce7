#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from wb.zigbee_presence.lib.constants import CLUSTER_ON_OFF, INVALID_ENDPOINT
from wb.zigbee_presence.lib.errors import RoutingError, ValidationError

from ..downstream.base import Transport
from ..downstream.models import CommandRequest, WireValue, WriteRequest, read_request
from .capabilities import attribute_for, endpoint_for, get_capability
from .codecs import LED_MODE, coerce_int, decode_time, encode_time, seconds_since_midnight
from .models import EncodeResult

logger = logging.getLogger(__name__)

ON_OFF_COMMANDS = ("toggle", "off", "on")

SetConverter = Callable[[str, Any], EncodeResult]
GetConverter = Callable[[str], EncodeResult]


def _write_single(key: str, value: Any) -> EncodeResult:
    """One attribute write of `value` to the attribute backing `key`"""
    attr = attribute_for(key)
    op = WriteRequest(
        endpoint_id=attr.endpoint_id,
        cluster=attr.cluster,
        attributes={attr.attr_id: WireValue(value, attr.datatype)},
    )
    return EncodeResult(operations=(op,))


class OutboundEncoder:
    """
    Converts capability set/get requests into wire operations for one device

    encode_set()/encode_get() are pure: they validate and build operations
    set()/get() additionally issue the operations through the transport

    Flow for set(key, value):
      1. Resolve converter for key (RoutingError if none)
      2. Validate and convert value (ValidationError, nothing sent)
      3. Send operations sequentially, transport errors propagate as is
      4. Return the optimistic state echo
    """

    def __init__(
        self,
        transport: Transport,
        device_id: str,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._transport = transport
        self._device_id = device_id
        self._clock = clock
        self._converters: Dict[str, Tuple[SetConverter, GetConverter]] = {}
        for key in ("sensor", "day_output", "night_output"):
            self._converters[key] = (self._set_on_off, self._get_attribute)
        for key in ("illuminance_threshold", "measurement_period"):
            self._converters[key] = (self._set_numeric, self._get_attribute)
        for key in ("min_time", "max_time"):
            self._converters[key] = (self._set_time, self._get_attribute)
        self._converters["local_time"] = (self._set_local_time, self._get_attribute)
        self._converters["led_mode"] = (self._set_led_mode, self._get_attribute)

    def _resolve(self, key: str) -> Tuple[SetConverter, GetConverter]:
        conv = self._converters.get(key)
        if conv is None:
            get_capability(key)
            raise RoutingError(key, "capability has no wire converter")
        return conv

    # ---- converters ----

    def _set_on_off(self, key: str, value: Any) -> EncodeResult:
        state = value.lower() if isinstance(value, str) else None
        if state not in ON_OFF_COMMANDS:
            raise ValidationError(key, value, f"expected one of {list(ON_OFF_COMMANDS)}")
        endpoint_id = endpoint_for(key)
        if endpoint_id == INVALID_ENDPOINT:
            raise RoutingError(key, "no endpoint")
        op = CommandRequest(endpoint_id=endpoint_id, cluster=CLUSTER_ON_OFF, command=state)
        return EncodeResult(operations=(op,))

    def _set_numeric(self, key: str, value: Any) -> EncodeResult:
        cap = get_capability(key)
        number = coerce_int(value, key, cap.value_min, cap.value_max)
        result = _write_single(key, number)
        result.state[key] = number
        return result

    def _set_time(self, key: str, value: Any) -> EncodeResult:
        seconds = encode_time(value, key)
        result = _write_single(key, seconds)
        result.state[key] = decode_time(seconds)
        return result

    def _set_local_time(self, key: str, value: Any) -> EncodeResult:
        seconds = seconds_since_midnight(self._clock())
        result = _write_single(key, seconds)
        result.state[key] = decode_time(seconds)
        return result

    def _set_led_mode(self, key: str, value: Any) -> EncodeResult:
        ordinal = LED_MODE.encode(value, key)
        result = _write_single(key, ordinal)
        result.state[key] = value
        return result

    def _get_attribute(self, key: str) -> EncodeResult:
        attr = attribute_for(key)
        if attr.endpoint_id == INVALID_ENDPOINT:
            raise RoutingError(key, "no endpoint")
        return EncodeResult(operations=(read_request(attr.endpoint_id, attr.cluster, [attr.key]),))

    # ---- public API ----

    def encode_set(self, key: str, value: Any) -> EncodeResult:
        convert_set, _ = self._resolve(key)
        return convert_set(key, value)

    def encode_get(self, key: str) -> EncodeResult:
        _, convert_get = self._resolve(key)
        return convert_get(key)

    async def set(self, key: str, value: Any) -> Dict[str, Any]:
        result = self.encode_set(key, value)
        await self._send(result)
        return dict(result.state)

    async def get(self, key: str) -> None:
        await self._send(self.encode_get(key))

    async def _send(self, result: EncodeResult) -> Optional[Any]:
        response = None
        for op in result.operations:
            logger.debug("[%s] -> %r", self._device_id, op)
            response = await self._transport.perform(self._device_id, op)
        return response
