#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..base import InboundHandler, Transport
from ..models import (
    AttributeKey,
    BindRequest,
    CommandRequest,
    ReadRequest,
    ReportingRequest,
    WireOperation,
    WireValue,
    WriteRequest,
)
from ..mqtt_zcl.codec import GatewayCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileReplayConfig:
    path: str
    device_id: Optional[str] = None


class FileReplayTransport(Transport):
    """
    Replays recorded gateway reports from a JSON file at start() and
    records outbound operations instead of sending them.

    File format: list of report objects, optionally with a "device" key
        [
          {"device": "0x00124b0029a1b2c3", "cluster": "genOnOff",
           "type": "attributeReport", "endpoint": 3, "data": {"onOff": 1}}
        ]

    This is intentionally minimal and synchronous.
    """

    def __init__(self, *, cfg: FileReplayConfig, codec: Optional[GatewayCodec] = None) -> None:
        self._cfg = cfg
        self._codec = codec or GatewayCodec()
        self._handler: Optional[InboundHandler] = None
        self.operations: List[Tuple[str, WireOperation]] = []

    @property
    def transport_name(self) -> str:
        return "file_replay"

    def start(self, handler: InboundHandler) -> None:
        self._handler = handler
        p = Path(self._cfg.path)
        data = json.loads(p.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError("file_replay expects JSON array of reports")

        for i, item in enumerate(data):
            device_id = self._cfg.device_id
            if isinstance(item, dict):
                device_id = str(item.get("device") or device_id or "")
            try:
                event = self._codec.decode_event(device_id or "", item)
            except ValueError as e:
                logger.warning("Skipping record %d: %r", i, e)
                continue
            handler(event)

    def stop(self) -> None:
        return

    async def bind(self, device_id: str, endpoint_id: int, target: str, clusters: Sequence[str]) -> None:
        self.operations.append((device_id, BindRequest(endpoint_id, target, tuple(clusters))))

    async def read(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        attributes: Sequence[AttributeKey],
    ) -> Dict[AttributeKey, Any]:
        self.operations.append((device_id, ReadRequest(endpoint_id, cluster, tuple(attributes))))
        return {}

    async def write(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        attributes: Mapping[AttributeKey, WireValue],
    ) -> None:
        self.operations.append((device_id, WriteRequest(endpoint_id, cluster, dict(attributes))))

    async def command(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        command: str,
        payload: Mapping[str, Any],
        options: Mapping[str, Any],
    ) -> None:
        self.operations.append(
            (device_id, CommandRequest(endpoint_id, cluster, command, dict(payload), dict(options)))
        )

    async def configure_reporting(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        attribute: AttributeKey,
        min_interval: int,
        max_interval: int,
        reportable_change: int,
    ) -> None:
        self.operations.append(
            (
                device_id,
                ReportingRequest(endpoint_id, cluster, attribute, min_interval, max_interval, reportable_change),
            )
        )
