"""Binary codecs for digiwire.

This module provides encoding, decoding and validation of the two digitizer
message variants and of the frame metadata they share.
"""

from __future__ import annotations

from . import analog_trace, event_list
from .analog_trace import AnalogTraceView, ChannelTraceView
from .event_list import EventListView
from .metadata import GPS_TIME_SIZE, decode_gps_time, encode_gps_time
from .validation import Violation, fatal_violations, raise_for_violations

__all__ = [
    "event_list",
    "analog_trace",
    "EventListView",
    "AnalogTraceView",
    "ChannelTraceView",
    "encode_gps_time",
    "decode_gps_time",
    "GPS_TIME_SIZE",
    "Violation",
    "fatal_violations",
    "raise_for_violations",
]
