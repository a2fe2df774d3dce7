#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..models import AttributeKey, InboundEvent, WireValue


def attribute_key_from_json(key: str) -> AttributeKey:
    """
    JSON object keys are strings; restore numeric attribute ids

    Examples:
        attribute_key_from_json("0xF001") -> 61441
        attribute_key_from_json("61441")  -> 61441
        attribute_key_from_json("onOff")  -> "onOff"
    """
    s = key.strip()
    if s.lower().startswith("0x"):
        try:
            return int(s, 16)
        except ValueError:
            return s
    if s.isdigit():
        return int(s)
    return s


def attribute_key_to_json(key: AttributeKey) -> str:
    if isinstance(key, int):
        return f"0x{key:04X}"
    return key


@dataclass(frozen=True)
class GatewayResponse:
    request_id: int
    ok: bool
    data: Dict[AttributeKey, Any]
    error: Optional[str] = None


class GatewayCodec:
    """
    JSON codec for the ZCL gateway MQTT protocol

    Request (published to <prefix>/<ieee>/request):
        {"id": 7, "op": "write", "endpoint": 1, "cluster": "msIlluminanceMeasurement",
         "attributes": {"0xF001": {"value": 12345, "type": 33}}}

    Response (<prefix>/<ieee>/response):
        {"id": 7, "status": "ok", "data": {...}}
        {"id": 7, "status": "error", "error": "timeout"}

    Report (<prefix>/<ieee>/report):
        {"cluster": "genOnOff", "type": "attributeReport", "endpoint": 3, "data": {"onOff": 1}}
    """

    def encode_request(self, request_id: int, op: str, endpoint_id: int, body: Mapping[str, Any]) -> bytes:
        msg: Dict[str, Any] = {"id": request_id, "op": op, "endpoint": endpoint_id}
        msg.update(body)
        return json.dumps(msg).encode("utf-8")

    @staticmethod
    def attributes_body(attributes: Mapping[AttributeKey, WireValue]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, wv in attributes.items():
            item: Dict[str, Any] = {"value": wv.value}
            if wv.datatype is not None:
                item["type"] = wv.datatype
            out[attribute_key_to_json(key)] = item
        return out

    @staticmethod
    def _load(raw: Any) -> Any:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")
        return json.loads(raw)

    @staticmethod
    def _data(data: Any) -> Dict[AttributeKey, Any]:
        if not isinstance(data, dict):
            return {}
        return {attribute_key_from_json(str(k)): v for k, v in data.items()}

    def decode_response(self, raw: Any) -> GatewayResponse:
        msg = self._load(raw)
        if not isinstance(msg, dict) or "id" not in msg:
            raise ValueError(f"Malformed gateway response: {msg!r}")
        ok = msg.get("status") == "ok"
        return GatewayResponse(
            request_id=int(msg["id"]),
            ok=ok,
            data=self._data(msg.get("data")),
            error=None if ok else str(msg.get("error") or msg.get("status")),
        )

    def decode_event(self, device_id: str, msg: Any) -> InboundEvent:
        """Build InboundEvent from a parsed report object"""
        if not isinstance(msg, dict):
            raise ValueError(f"Malformed gateway report: {msg!r}")
        try:
            return InboundEvent(
                device_id=device_id,
                cluster=str(msg["cluster"]),
                kind=str(msg.get("type", "attributeReport")),
                endpoint_id=int(msg["endpoint"]),
                data=self._data(msg.get("data")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed gateway report: {msg!r}") from e

    def decode_report(self, device_id: str, raw: Any) -> InboundEvent:
        return self.decode_event(device_id, self._load(raw))
