"""Pydantic message modeling for digiwire.

This module provides the immutable value types carried by the wire format.
"""

from __future__ import annotations

from .base import WireModel
from .fields import BoundedInt, UInt8, UInt16, UInt32, UInt64, UnsignedInt
from .messages import (
    ANALOG_TRACE_IDENTIFIER,
    EVENT_LIST_IDENTIFIER,
    AnalogTraceMessage,
    ChannelTrace,
    EventListMessage,
)
from .metadata import FrameMetadata, GpsTime

__all__ = [
    "WireModel",
    "BoundedInt",
    "UnsignedInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "GpsTime",
    "FrameMetadata",
    "ChannelTrace",
    "EventListMessage",
    "AnalogTraceMessage",
    "EVENT_LIST_IDENTIFIER",
    "ANALOG_TRACE_IDENTIFIER",
]
