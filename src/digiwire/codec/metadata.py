"""Codec for the GpsTime struct and the FrameMetadataV2 table.

GpsTime is a fixed-layout struct stored inline in the metadata table. Its
fields are packed in declaration order with the padding the container's
alignment rules require (2-byte fields on even offsets):

    year u8 | pad | day u16 | hour u8 | minute u8 | second u8 | pad |
    millisecond u16 | microsecond u16 | nanosecond u16
"""

from __future__ import annotations

import struct

import flatbuffers
from pydantic import ValidationError

from ..exceptions import DecodeError, EncodeError, MissingRequiredFieldError, TruncatedBufferError
from ..models import FrameMetadata, GpsTime
from .buffer import BOOL, UBYTE, UINT, ULONG, USHORT, check_scalar
from .schema import FRAME_METADATA, GPS_TIME, FrameMetadataSlot
from .table import Table, add_scalar

GPS_TIME_FORMAT = "<BxHBBBxHHH"
GPS_TIME_SIZE = struct.calcsize(GPS_TIME_FORMAT)
GPS_TIME_ALIGNMENT = 2

_GPS_TIME_FIELDS = (
    ("year", UBYTE),
    ("day", USHORT),
    ("hour", UBYTE),
    ("minute", UBYTE),
    ("second", UBYTE),
    ("millisecond", USHORT),
    ("microsecond", USHORT),
    ("nanosecond", USHORT),
)

FRAME_METADATA_TABLE = FRAME_METADATA

_FRAME_METADATA_SCALARS = (
    (FrameMetadataSlot.PERIOD_NUMBER, "period_number", ULONG, 0),
    (FrameMetadataSlot.PROTONS_PER_PULSE, "protons_per_pulse", UBYTE, 0),
    (FrameMetadataSlot.RUNNING, "running", BOOL, False),
    (FrameMetadataSlot.FRAME_NUMBER, "frame_number", UINT, 0),
    (FrameMetadataSlot.VETO_FLAGS, "veto_flags", USHORT, 0),
)


def _gps_time_values(timestamp: GpsTime) -> list[int]:
    values = [getattr(timestamp, name) for name, _ in _GPS_TIME_FIELDS]
    for (name, scalar), value in zip(_GPS_TIME_FIELDS, values):
        check_scalar(scalar, value, f"{GPS_TIME}.{name}")
    return values


def encode_gps_time(timestamp: GpsTime) -> bytes:
    """Pack a timestamp into its fixed struct layout.

    Raises:
        EncodeError: If a field does not fit its wire width
    """
    values = _gps_time_values(timestamp)
    try:
        return struct.pack(GPS_TIME_FORMAT, *values)
    except struct.error as err:
        raise EncodeError(f"Field {GPS_TIME}: cannot pack {values}: {err}") from err


def decode_gps_time(data: bytes | bytearray | memoryview, offset: int = 0) -> GpsTime:
    """Unpack a timestamp from ``data`` at ``offset``.

    Raises:
        TruncatedBufferError: If fewer than GPS_TIME_SIZE bytes remain
        DecodeError: If a decoded field is out of range
    """
    available = memoryview(data).nbytes - offset
    if offset < 0 or available < GPS_TIME_SIZE:
        raise TruncatedBufferError(
            f"Truncated data while reading {GPS_TIME}: need {GPS_TIME_SIZE} bytes, "
            f"have {max(available, 0)}"
        )

    values = struct.unpack_from(GPS_TIME_FORMAT, data, offset)
    try:
        return GpsTime(**dict(zip((name for name, _ in _GPS_TIME_FIELDS), values)))
    except ValidationError as err:
        raise DecodeError(f"Invalid {GPS_TIME} {values}: {err}") from err


def prepend_gps_time(builder: flatbuffers.Builder, timestamp: GpsTime) -> int:
    """Write a GpsTime struct at the builder's head and return its offset.

    Structs are stored inline, so this must be called inside the table that
    holds the struct, immediately before the slot is added.
    """
    year, day, hour, minute, second, millisecond, microsecond, nanosecond = _gps_time_values(
        timestamp
    )
    builder.Prep(GPS_TIME_ALIGNMENT, GPS_TIME_SIZE)
    builder.PrependUint16(nanosecond)
    builder.PrependUint16(microsecond)
    builder.PrependUint16(millisecond)
    builder.Pad(1)
    builder.PrependUint8(second)
    builder.PrependUint8(minute)
    builder.PrependUint8(hour)
    builder.PrependUint16(day)
    builder.Pad(1)
    builder.PrependUint8(year)
    return builder.Offset()


def write_frame_metadata(builder: flatbuffers.Builder, metadata: FrameMetadata) -> int:
    """Write a FrameMetadataV2 table and return its offset.

    The timestamp is added first, so when this is the first table of a buffer
    the struct occupies the buffer's last bytes.

    Raises:
        MissingRequiredFieldError: If the timestamp is missing
        EncodeError: If a field does not fit its wire width
    """
    if getattr(metadata, "timestamp", None) is None:
        raise MissingRequiredFieldError(f"{FRAME_METADATA_TABLE}.timestamp")

    builder.StartObject(len(FrameMetadataSlot))
    builder.PrependStructSlot(
        FrameMetadataSlot.TIMESTAMP, prepend_gps_time(builder, metadata.timestamp), 0
    )
    for slot, name, scalar, default in _FRAME_METADATA_SCALARS:
        add_scalar(
            builder,
            slot,
            scalar,
            getattr(metadata, name),
            default=default,
            field=f"{FRAME_METADATA_TABLE}.{name}",
        )
    return builder.EndObject()


def read_frame_metadata(table: Table) -> FrameMetadata:
    """Read an owned FrameMetadata from its table.

    Raises:
        MissingRequiredFieldError: If the timestamp is absent
        TruncatedBufferError: If a field lies outside the buffer
        DecodeError: If a decoded field is out of range
    """
    raw = table.struct_bytes(FrameMetadataSlot.TIMESTAMP, GPS_TIME_SIZE, "timestamp")
    if raw is None:
        raise MissingRequiredFieldError(f"{FRAME_METADATA_TABLE}.timestamp")

    fields = {
        name: table.scalar(slot, scalar, name, default=default)
        for slot, name, scalar, default in _FRAME_METADATA_SCALARS
    }
    try:
        return FrameMetadata(timestamp=decode_gps_time(raw), **fields)
    except ValidationError as err:
        raise DecodeError(f"Invalid {FRAME_METADATA_TABLE}: {err}") from err
