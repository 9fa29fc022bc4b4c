"""Table layouts of the digitizer schemas.

Each enum lists a table's fields by slot (declaration order in the schema).
The wire position of a slot's entry inside the vtable is ``vtable_offset(slot)``,
which is the constant generated FlatBuffers accessors pass to ``Table.Offset``.
"""

from __future__ import annotations

import enum

from flatbuffers import number_types as N

GPS_TIME = "GpsTime"
FRAME_METADATA = "FrameMetadataV2"
EVENT_LIST = "DigitizerEventListMessage"
CHANNEL_TRACE = "ChannelTrace"
ANALOG_TRACE = "DigitizerAnalogTraceMessage"


class FrameMetadataSlot(enum.IntEnum):
    TIMESTAMP = 0
    PERIOD_NUMBER = 1
    PROTONS_PER_PULSE = 2
    RUNNING = 3
    FRAME_NUMBER = 4
    VETO_FLAGS = 5


class EventListSlot(enum.IntEnum):
    DIGITIZER_ID = 0
    METADATA = 1
    TIME = 2
    VOLTAGE = 3
    CHANNEL = 4


class ChannelTraceSlot(enum.IntEnum):
    CHANNEL = 0
    VOLTAGE = 1


class AnalogTraceSlot(enum.IntEnum):
    DIGITIZER_ID = 0
    METADATA = 1
    SAMPLE_RATE = 2
    CHANNELS = 3


def vtable_offset(slot: int) -> int:
    """Byte offset of a slot's entry from the start of its vtable."""
    return N.VOffsetTFlags.bytewidth * (2 + slot)
