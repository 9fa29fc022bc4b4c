"""digiwire: Digitizer Streaming Wire Format

A Python library for the binary messages exchanged between neutron-detector
digitizers and the consumers of their data. Buffers follow the FlatBuffers
container layout, carry a 4-byte file identifier and decode without copying
the sample arrays.

Message kinds:
- ``dev2``: DigitizerEventListMessage, one (time, voltage, channel) record per event
- ``dat2``: DigitizerAnalogTraceMessage, one sampled waveform per channel

Key Features:
- Pydantic-based immutable message models
- Zero-copy decoding into read-only numpy views, or owned copies on request
- Required-field, array-alignment and sample-rate checks on both sides of the wire
- Identifier peek for routing heterogeneous streams

Quick Start:
    >>> from digiwire import EventListMessage, FrameMetadata, GpsTime, decode, encode
    >>>
    >>> metadata = FrameMetadata(timestamp=GpsTime.now(), frame_number=7, running=True)
    >>> msg = EventListMessage(
    ...     digitizer_id=3, metadata=metadata, time=[12, 40], voltage=[901, 877], channel=[5, 6]
    ... )
    >>> data = encode(msg)
    >>> view = decode(data)
    >>> view.time
    array([12, 40], dtype=uint32)
"""

from __future__ import annotations

from .builders import AnalogTraceBuilder, EventListBuilder
from .codec import (
    GPS_TIME_SIZE,
    AnalogTraceView,
    ChannelTraceView,
    EventListView,
    Violation,
    analog_trace,
    decode_gps_time,
    encode_gps_time,
    event_list,
    fatal_violations,
    raise_for_violations,
)
from .dispatch import MessageKind, decode, encode, has_identifier, identify
from .exceptions import (
    BadIdentifierError,
    DecodeError,
    DigiwireError,
    DuplicateChannelError,
    EncodeError,
    InvalidMessageError,
    LengthMismatchError,
    MissingRequiredFieldError,
    TruncatedBufferError,
    ZeroSampleRateError,
)
from .models import (
    ANALOG_TRACE_IDENTIFIER,
    EVENT_LIST_IDENTIFIER,
    AnalogTraceMessage,
    ChannelTrace,
    EventListMessage,
    FrameMetadata,
    GpsTime,
)

__version__ = "0.2.0"

__all__ = [
    # Models
    "GpsTime",
    "FrameMetadata",
    "EventListMessage",
    "ChannelTrace",
    "AnalogTraceMessage",
    "EVENT_LIST_IDENTIFIER",
    "ANALOG_TRACE_IDENTIFIER",
    # Codecs
    "event_list",
    "analog_trace",
    "EventListView",
    "AnalogTraceView",
    "ChannelTraceView",
    "encode_gps_time",
    "decode_gps_time",
    "GPS_TIME_SIZE",
    # Validation
    "Violation",
    "fatal_violations",
    "raise_for_violations",
    # Dispatch
    "MessageKind",
    "identify",
    "has_identifier",
    "encode",
    "decode",
    # Builders
    "EventListBuilder",
    "AnalogTraceBuilder",
    # Exceptions
    "DigiwireError",
    "EncodeError",
    "DecodeError",
    "BadIdentifierError",
    "TruncatedBufferError",
    "InvalidMessageError",
    "MissingRequiredFieldError",
    "LengthMismatchError",
    "ZeroSampleRateError",
    "DuplicateChannelError",
    # Version
    "__version__",
]
