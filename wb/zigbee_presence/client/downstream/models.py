#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

# Attribute ids are numeric (0xF001) or symbolic names used by the stack ("onOff")
AttributeKey = Union[int, str]


@dataclass(frozen=True)
class InboundEvent:
    """
    Attribute message received from the protocol stack

    This object is the transport output BEFORE any decoding

    Fields:
      - device_id: device address (IEEE) the message came from
      - cluster: cluster name, e.g. "genOnOff"
      - kind: "attributeReport" or "readResponse"
      - endpoint_id: source endpoint
      - data: attribute payload, keys are AttributeKey

    Example:
        InboundEvent(
            device_id="0x00124b0029a1b2c3",
            cluster="genOnOff",
            kind="attributeReport",
            endpoint_id=3,
            data={"onOff": 1},
        )
    """

    device_id: str
    cluster: str
    kind: str
    endpoint_id: int
    data: Mapping[AttributeKey, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WireValue:
    """Attribute value tagged with its ZCL datatype"""

    value: Any
    datatype: Optional[int] = None


@dataclass(frozen=True)
class ReadRequest:
    endpoint_id: int
    cluster: str
    attributes: Tuple[AttributeKey, ...]


@dataclass(frozen=True)
class WriteRequest:
    endpoint_id: int
    cluster: str
    attributes: Mapping[AttributeKey, WireValue]


@dataclass(frozen=True)
class CommandRequest:
    endpoint_id: int
    cluster: str
    command: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BindRequest:
    endpoint_id: int
    target: str
    clusters: Tuple[str, ...]


@dataclass(frozen=True)
class ReportingRequest:
    """Attribute reporting configuration for one attribute"""

    endpoint_id: int
    cluster: str
    attribute: AttributeKey
    min_interval: int
    max_interval: int
    reportable_change: int


WireOperation = Union[ReadRequest, WriteRequest, CommandRequest, BindRequest, ReportingRequest]


def read_request(endpoint_id: int, cluster: str, attributes: Sequence[AttributeKey]) -> ReadRequest:
    return ReadRequest(endpoint_id=endpoint_id, cluster=cluster, attributes=tuple(attributes))
