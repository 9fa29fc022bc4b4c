"""Digitizer message types.

Two sibling message variants share the FrameMetadata sub-object by value:

- EventListMessage: one record per detected event, as three aligned arrays
- AnalogTraceMessage: one sampled waveform per channel
"""

from __future__ import annotations

from typing import ClassVar

from .base import WireModel
from .fields import UInt8, UInt16, UInt32, UInt64
from .metadata import FrameMetadata

EVENT_LIST_IDENTIFIER = b"dev2"
ANALOG_TRACE_IDENTIFIER = b"dat2"


class EventListMessage(WireModel):
    """Event-mode output of one digitizer for one frame.

    Index i across time, voltage and channel describes one detected event.
    The model accepts arrays of unequal length so that producers can
    validate() partially built messages; encoding such a message fails.

    Attributes:
        digitizer_id: Source digitizer
        metadata: Frame descriptor (required)
        time: Arrival times in nanoseconds since the frame start
        voltage: Measured voltage of each event
        channel: Channel number (not a zero-based index) of each event
    """

    digitizer_id: UInt8
    metadata: FrameMetadata
    time: tuple[UInt32, ...] = ()
    voltage: tuple[UInt16, ...] = ()
    channel: tuple[UInt32, ...] = ()

    wire_identifier: ClassVar[bytes | None] = EVENT_LIST_IDENTIFIER
    wire_table: ClassVar[str | None] = "DigitizerEventListMessage"

    @property
    def event_count(self) -> int:
        """Number of events, taken from the time array."""
        return len(self.time)


class ChannelTrace(WireModel):
    """Raw waveform of one channel."""

    channel: UInt32
    voltage: tuple[UInt16, ...] = ()

    wire_table: ClassVar[str | None] = "ChannelTrace"


class AnalogTraceMessage(WireModel):
    """Waveform output of one digitizer for one frame.

    Attributes:
        digitizer_id: Source digitizer
        metadata: Frame descriptor (required)
        sample_rate: Samples per second, shared by every channel
        channels: One trace per channel; trace lengths may differ
    """

    digitizer_id: UInt8
    metadata: FrameMetadata
    sample_rate: UInt64
    channels: tuple[ChannelTrace, ...] = ()

    wire_identifier: ClassVar[bytes | None] = ANALOG_TRACE_IDENTIFIER
    wire_table: ClassVar[str | None] = "DigitizerAnalogTraceMessage"

    def channel_numbers(self) -> list[int]:
        """Channel numbers in message order."""
        return [trace.channel for trace in self.channels]
