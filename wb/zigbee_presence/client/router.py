#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from wb.zigbee_presence.lib.errors import RoutingError

from .bridge.device_registry import DeviceRegistry
from .bridge.state_store import StateStore
from .device.configure import configure_device
from .device.decoder import InboundDecoder
from .device.encoder import OutboundEncoder
from .device.models import Device
from .downstream.base import Transport
from .downstream.models import InboundEvent

logger = logging.getLogger(__name__)

# Called with (device, merged state) after every state change
StatePublisher = Callable[[Device, Dict[str, Any]], None]


class Router:
    """
    Routes messages between the Zigbee transport and capability state

    Responsibilities:
      1) Inbound (transport -> capability state):
         - Receive InboundEvent from the transport
         - Find the attached device by event.device_id
         - Decode payload via InboundDecoder into a partial state
         - Store it as confirmed state and publish the merged state

      2) Outbound (capability request -> transport):
         - Accept set/get for (device, capability key)
         - Encode via the device's OutboundEncoder and issue wire operations
         - On successful set store the optimistic echo as pending state

    Notes:
      - Router does NOT know the transport protocol; transports do
      - Router does NOT parse config; DeviceRegistry does
      - Validation, routing and transport errors propagate to the caller;
        state is only touched after the wire exchange succeeded
    """

    def __init__(
        self,
        *,
        devreg: DeviceRegistry,
        transport: Transport,
        store: Optional[StateStore] = None,
        decoder: Optional[InboundDecoder] = None,
        publisher: Optional[StatePublisher] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.devreg = devreg
        self.transport = transport
        self.store = store if store is not None else StateStore()
        self.decoder = decoder or InboundDecoder()
        self.publisher = publisher
        self._encoders: Dict[str, OutboundEncoder] = {}
        for device in devreg.devices.values():
            self.attach(device, clock=clock)

    def attach(self, device: Device, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self.devreg.devices.setdefault(device.device_id, device)
        self.devreg.names.setdefault(device.friendly_name, device.device_id)
        self.store.attach(device.device_id)
        self._encoders[device.device_id] = OutboundEncoder(self.transport, device.device_id, clock=clock)

    def detach(self, device_id: str) -> None:
        device = self.devreg.devices.pop(device_id, None)
        if device is not None:
            self.devreg.names.pop(device.friendly_name, None)
        self._encoders.pop(device_id, None)
        self.store.detach(device_id)

    def _device(self, device_id: str) -> Device:
        device = self.devreg.get_device(device_id)
        if device is None:
            raise RoutingError(device_id, "unknown device")
        return device

    def on_inbound_event(self, event: InboundEvent) -> Dict[str, Any]:
        device = self.devreg.get_device(event.device_id)
        if device is None:
            logger.debug("No attached device for %s", event.device_id)
            return {}

        update = self.decoder.decode(event)
        if not update:
            logger.debug(
                "[%s] %s %s ep%s: nothing to decode",
                device.friendly_name,
                event.cluster,
                event.kind,
                event.endpoint_id,
            )
            return {}

        logger.debug("[%s] <- %r", device.friendly_name, update)
        self.store.apply_confirmed(device.device_id, update)
        self._publish(device)
        return update

    async def set(self, device_id: str, key: str, value: Any) -> Dict[str, Any]:
        """Set capability value; returns the optimistic state echo"""
        device = self._device(device_id)
        echo = await self._encoders[device_id].set(key, value)
        if echo:
            self.store.apply_pending(device_id, echo)
            self._publish(device)
        return echo

    async def get(self, device_id: str, key: str) -> None:
        """Request a read; the value arrives later as an inbound event"""
        self._device(device_id)
        await self._encoders[device_id].get(key)

    async def configure(self, device_id: str, coordinator: str) -> None:
        self._device(device_id)
        await configure_device(self.transport, device_id, coordinator)

    def state(self, device_id: str) -> Dict[str, Any]:
        return self.store.snapshot(device_id)

    def _publish(self, device: Device) -> None:
        if self.publisher is None:
            return
        self.publisher(device, self.store.snapshot(device.device_id))
