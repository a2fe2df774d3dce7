#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Error types raised by the presence sensor layer

  - ValidationError: requested value is outside the capability domain
  - RoutingError:    capability key does not resolve to an endpoint/converter
  - TransportError:  wire exchange failed (raised by transports, never wrapped)
"""


class PresenceSensorError(Exception):
    """Base class for all errors of this package"""


class ValidationError(PresenceSensorError, ValueError):
    def __init__(self, key: str, value, reason: str) -> None:
        super().__init__(f"Invalid value {value!r} for {key!r}: {reason}")
        self.key = key
        self.value = value


class RoutingError(PresenceSensorError, LookupError):
    def __init__(self, key: str, reason: str = "unknown capability") -> None:
        super().__init__(f"Cannot route {key!r}: {reason}")
        self.key = key


class TransportError(PresenceSensorError, RuntimeError):
    """Wire exchange failed or was rejected by the protocol stack"""
