#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Bootstrap sequence run once after the device joins:
binding, attribute reporting and initial attribute reads
"""

from __future__ import annotations

import logging
from typing import List

from wb.zigbee_presence.lib.constants import (
    CLUSTER_ILLUMINANCE,
    CLUSTER_OCCUPANCY,
    CLUSTER_ON_OFF,
    CLUSTER_TIME,
    FIRST_ENDPOINT,
    REPORTING_CHANGE,
    REPORTING_MAX_INTERVAL,
    REPORTING_MIN_INTERVAL,
    SECOND_ENDPOINT,
    THIRD_ENDPOINT,
)

from ..downstream.base import Transport
from ..downstream.models import BindRequest, ReportingRequest, WireOperation, read_request
from .capabilities import attribute_for

logger = logging.getLogger(__name__)


def _reporting(endpoint_id: int, key: str) -> ReportingRequest:
    attr = attribute_for(key)
    return ReportingRequest(
        endpoint_id=endpoint_id,
        cluster=attr.cluster,
        attribute=attr.key,
        min_interval=REPORTING_MIN_INTERVAL,
        max_interval=REPORTING_MAX_INTERVAL,
        reportable_change=REPORTING_CHANGE,
    )


def _initial_read(key: str) -> WireOperation:
    attr = attribute_for(key)
    return read_request(attr.endpoint_id, attr.cluster, [attr.key])


def configure_operations(coordinator: str) -> List[WireOperation]:
    """
    Ordered wire operations of the configure sequence

    coordinator: bind target (coordinator address)
    """
    return [
        BindRequest(
            FIRST_ENDPOINT,
            coordinator,
            (CLUSTER_ON_OFF, CLUSTER_TIME, CLUSTER_OCCUPANCY, CLUSTER_ILLUMINANCE),
        ),
        _reporting(FIRST_ENDPOINT, "sensor"),
        _reporting(FIRST_ENDPOINT, "illuminance_raw"),
        _reporting(FIRST_ENDPOINT, "occupancy"),
        BindRequest(SECOND_ENDPOINT, coordinator, (CLUSTER_ON_OFF,)),
        _reporting(SECOND_ENDPOINT, "day_output"),
        BindRequest(THIRD_ENDPOINT, coordinator, (CLUSTER_ON_OFF,)),
        _reporting(THIRD_ENDPOINT, "night_output"),
        _initial_read("illuminance_threshold"),
        _initial_read("min_time"),
        _initial_read("max_time"),
        _initial_read("measurement_period"),
        _initial_read("sensor"),
        _initial_read("led_mode"),
    ]


async def configure_device(transport: Transport, device_id: str, coordinator: str) -> None:
    """Run the configure sequence; the first failing exchange aborts it"""
    logger.info("[%s] Configuring device (bind target %s)", device_id, coordinator)
    for op in configure_operations(coordinator):
        logger.debug("[%s] configure -> %r", device_id, op)
        await transport.perform(device_id, op)
    logger.info("[%s] Configure complete", device_id)
