#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Sequence

from .models import (
    AttributeKey,
    BindRequest,
    CommandRequest,
    InboundEvent,
    ReadRequest,
    ReportingRequest,
    WireOperation,
    WireValue,
    WriteRequest,
)

InboundHandler = Callable[[InboundEvent], None]


class Transport(ABC):
    """
    Base interface for the Zigbee protocol stack

    Transport responsibilities:
      - start(handler): begin receiving attribute messages and pass
          InboundEvent objects to handler
      - bind/read/write/command/configure_reporting: one request/response
          exchange each; coroutine suspends until it completes, raises
          TransportError on failure
      - stop(): optional, for cleanup

    Notes:
      - no retry and no backoff: a failed exchange surfaces to the caller
      - concurrent calls are allowed and are not serialized here
    """

    @property
    @abstractmethod
    def transport_name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def start(self, handler: InboundHandler) -> None:
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def bind(self, device_id: str, endpoint_id: int, target: str, clusters: Sequence[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def read(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        attributes: Sequence[AttributeKey],
    ) -> Dict[AttributeKey, Any]:
        raise NotImplementedError

    @abstractmethod
    async def write(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        attributes: Mapping[AttributeKey, WireValue],
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def command(
        self,
        device_id: str,
        endpoint_id: int,
        cluster: str,
        command: str,
        payload: Mapping[str, Any],
        options: Mapping[str, Any],
    ) -> None:
        raise NotImplementedError

    @abstractmethod
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
        raise NotImplementedError

    async def perform(self, device_id: str, op: WireOperation) -> Any:
        """Issue one wire operation built by the encoder or the configure sequence"""
        if isinstance(op, ReadRequest):
            return await self.read(device_id, op.endpoint_id, op.cluster, op.attributes)
        if isinstance(op, WriteRequest):
            return await self.write(device_id, op.endpoint_id, op.cluster, op.attributes)
        if isinstance(op, CommandRequest):
            return await self.command(device_id, op.endpoint_id, op.cluster, op.command, op.payload, op.options)
        if isinstance(op, BindRequest):
            return await self.bind(device_id, op.endpoint_id, op.target, op.clusters)
        if isinstance(op, ReportingRequest):
            return await self.configure_reporting(
                device_id,
                op.endpoint_id,
                op.cluster,
                op.attribute,
                op.min_interval,
                op.max_interval,
                op.reportable_change,
            )
        raise TypeError(f"Unsupported wire operation: {type(op).__name__}")
