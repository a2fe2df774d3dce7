#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Value codecs for the presence sensor
Handles conversions between ZCL wire values and capability values
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Sequence

from wb.zigbee_presence.lib.constants import SECONDS_PER_DAY
from wb.zigbee_presence.lib.errors import ValidationError

logger = logging.getLogger(__name__)

# Marker for raw values that have no meaning in the capability domain
UNKNOWN = None

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")


def decode_time(seconds: int) -> str:
    """
    Convert day offset in seconds to "HH:MM" string

    Seconds are truncated to minutes; values beyond one day wrap around

    Examples:
        >>> decode_time(28800)
        '08:00'
        >>> decode_time(86400 + 61)
        '00:01'
    """
    seconds = int(seconds)
    hours = seconds // 3600 % 24
    minutes = seconds // 60 % 60
    return f"{hours:02d}:{minutes:02d}"


def encode_time(text: Any, key: str = "time") -> int:
    """
    Convert "HH:MM" string to day offset in seconds

    Raises ValidationError when text is not two 2-digit groups separated by
    a colon, or when hours/minutes are out of range

    Examples:
        >>> encode_time("08:00")
        28800
        >>> encode_time("23:59")
        86340
    """
    match = _TIME_RE.match(text) if isinstance(text, str) else None
    if match is None:
        raise ValidationError(key, text, "expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError(key, text, "time of day out of range")
    return hours * 3600 + minutes * 60


def seconds_since_midnight(now) -> int:
    """Seconds elapsed since local midnight of `now` (a datetime), rounded"""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return round((now - midnight).total_seconds()) % SECONDS_PER_DAY


def decode_illuminance(raw: int) -> float:
    """
    Convert raw illuminance count to lux

    lux = 10 ^ ((raw - 1) / 10000), zero stays zero

    Examples:
        >>> decode_illuminance(0)
        0
        >>> decode_illuminance(1)
        1.0
        >>> decode_illuminance(10001)
        10.0
    """
    if raw == 0:
        return 0
    return 10 ** ((raw - 1) / 10000)


class EnumCodec:
    """
    Ordinal <-> label table for an enumerated attribute

    decode(): ordinal -> label, UNKNOWN for anything outside the table
    encode(): label -> ordinal, numeric text accepted as an ordinal
    """

    def __init__(self, labels: Sequence[str]) -> None:
        self.labels = tuple(labels)
        self._ordinals: Dict[str, int] = {label: i for i, label in enumerate(self.labels)}

    def decode(self, ordinal: Any) -> Optional[str]:
        if isinstance(ordinal, bool) or not isinstance(ordinal, int):
            logger.debug("Non-integer enum ordinal %r", ordinal)
            return UNKNOWN
        if 0 <= ordinal < len(self.labels):
            return self.labels[ordinal]
        return UNKNOWN

    def encode(self, label: Any, key: str = "enum") -> int:
        if isinstance(label, str) and label in self._ordinals:
            return self._ordinals[label]
        try:
            ordinal = int(str(label).strip(), 10)
        except ValueError:
            raise ValidationError(key, label, f"expected one of {list(self.labels)}") from None
        if not 0 <= ordinal < len(self.labels):
            raise ValidationError(key, label, f"ordinal out of range 0..{len(self.labels) - 1}")
        return ordinal


LED_MODE = EnumCodec(["Always", "Never", "Night"])
TARGET_TYPE = EnumCodec(["None", "Moving", "Stationary", "Moving and stationary"])


def coerce_int(value: Any, key: str, minimum: int, maximum: int) -> int:
    """
    Coerce a requested numeric value to int within [minimum, maximum]

    Accepts ints, integral floats and numeric strings
    """
    if isinstance(value, bool):
        raise ValidationError(key, value, "expected a number")
    if isinstance(value, str):
        value = value.strip()
    if isinstance(value, int):
        number = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            raise ValidationError(key, value, "expected a number") from None
        if not number.is_integer():
            raise ValidationError(key, value, "expected an integer")
        number = int(number)
    if not minimum <= number <= maximum:
        raise ValidationError(key, value, f"out of range {minimum}..{maximum}")
    return number
