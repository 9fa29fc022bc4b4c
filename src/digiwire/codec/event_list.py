"""Codec for DigitizerEventListMessage buffers (file identifier ``dev2``).

An event list carries one record per detected event as three positionally
aligned arrays. The arrays must have equal lengths: encode() checks this
before writing anything and decode() checks it again on the way back, since
a buffer can be corrupted or hand-crafted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from ..exceptions import LengthMismatchError, MissingRequiredFieldError
from ..models import EVENT_LIST_IDENTIFIER, EventListMessage, FrameMetadata
from .buffer import UBYTE, UINT, USHORT
from .metadata import FRAME_METADATA_TABLE, read_frame_metadata, write_frame_metadata
from .schema import EVENT_LIST, EventListSlot
from .table import add_scalar, create_vector, finish, new_builder, read_root
from .validation import Violation, raise_for_violations

LOG = logging.getLogger(__name__)

TABLE_NAME = EventListMessage.wire_table or EVENT_LIST
IDENTIFIER = EVENT_LIST_IDENTIFIER


@dataclass(frozen=True, eq=False)
class EventListView:
    """Zero-copy view of a decoded event list.

    The arrays are read-only numpy views into the buffer passed to decode()
    and are only valid while that buffer is. Call to_message() for an owned copy.
    """

    digitizer_id: int
    metadata: FrameMetadata
    time: np.ndarray
    voltage: np.ndarray
    channel: np.ndarray

    def __len__(self) -> int:
        return len(self.time)

    def to_message(self) -> EventListMessage:
        """Copy the view into an owned, immutable message."""
        return EventListMessage(
            digitizer_id=self.digitizer_id,
            metadata=self.metadata,
            time=self.time.tolist(),
            voltage=self.voltage.tolist(),
            channel=self.channel.tolist(),
        )


def _check_lengths(time: Sequence[Any], voltage: Sequence[Any], channel: Sequence[Any]) -> None:
    lengths = {"time": len(time), "voltage": len(voltage), "channel": len(channel)}
    if len(set(lengths.values())) != 1:
        raise LengthMismatchError(lengths)


def encode(
    digitizer_id: int,
    metadata: FrameMetadata,
    time: Sequence[int] | np.ndarray,
    voltage: Sequence[int] | np.ndarray,
    channel: Sequence[int] | np.ndarray,
) -> bytes:
    """Encode an event list to a ``dev2`` buffer.

    Args:
        digitizer_id: Source digitizer (u8)
        metadata: Frame descriptor
        time: Event arrival times in ns since frame start (u32 each)
        voltage: Event voltages (u16 each)
        channel: Event channel numbers (u32 each)

    Returns:
        Encoded buffer

    Raises:
        LengthMismatchError: If the three arrays differ in length
        MissingRequiredFieldError: If metadata is None
        EncodeError: If a value does not fit its wire width

    Example:
        >>> data = encode(3, metadata, time=[10, 25], voltage=[410, 388], channel=[1, 4])
        >>> identify(data)
        <MessageKind.EVENT_LIST: b'dev2'>
    """
    _check_lengths(time, voltage, channel)
    if metadata is None:
        raise MissingRequiredFieldError(f"{TABLE_NAME}.metadata")

    builder = new_builder()
    metadata_offset = write_frame_metadata(builder, metadata)
    time_offset = create_vector(builder, UINT, time, f"{TABLE_NAME}.time")
    voltage_offset = create_vector(builder, USHORT, voltage, f"{TABLE_NAME}.voltage")
    channel_offset = create_vector(builder, UINT, channel, f"{TABLE_NAME}.channel")

    builder.StartObject(len(EventListSlot))
    add_scalar(
        builder, EventListSlot.DIGITIZER_ID, UBYTE, digitizer_id, field=f"{TABLE_NAME}.digitizer_id"
    )
    builder.PrependUOffsetTRelativeSlot(EventListSlot.METADATA, metadata_offset, 0)
    builder.PrependUOffsetTRelativeSlot(EventListSlot.TIME, time_offset, 0)
    builder.PrependUOffsetTRelativeSlot(EventListSlot.VOLTAGE, voltage_offset, 0)
    builder.PrependUOffsetTRelativeSlot(EventListSlot.CHANNEL, channel_offset, 0)
    data = finish(builder, builder.EndObject(), IDENTIFIER)
    LOG.debug(
        "Encoded event list: digitizer %d, frame %d, %d events, %d bytes",
        digitizer_id,
        metadata.frame_number,
        len(time),
        len(data),
    )
    return data


def encode_message(message: EventListMessage) -> bytes:
    """Encode an EventListMessage model.

    Raises:
        LengthMismatchError: If the arrays differ in length
        MissingRequiredFieldError: If metadata is missing
        EncodeError: If a value does not fit its wire width
    """
    raise_for_violations(validate(message))
    return encode(
        message.digitizer_id,
        message.metadata,
        message.time,
        message.voltage,
        message.channel,
    )


def decode(
    data: bytes | bytearray | memoryview, *, copy: bool = False
) -> EventListView | EventListMessage:
    """Decode a ``dev2`` buffer.

    Args:
        data: Encoded buffer
        copy: If False, return an EventListView borrowing ``data``; if True,
            return an owned EventListMessage that does not reference ``data``

    Returns:
        View or owned message

    Raises:
        BadIdentifierError: If the buffer is not an event list
        TruncatedBufferError: If the buffer is shorter than its declared shape
        MissingRequiredFieldError: If the frame metadata is absent or null
        LengthMismatchError: If the decoded arrays differ in length
        DecodeError: If a decoded field is out of range or an offset is invalid
    """
    root = read_root(data, IDENTIFIER, TABLE_NAME)
    metadata_table = root.table(
        EventListSlot.METADATA, FRAME_METADATA_TABLE, "metadata", required=True
    )

    view = EventListView(
        digitizer_id=root.scalar(EventListSlot.DIGITIZER_ID, UBYTE, "digitizer_id"),
        metadata=read_frame_metadata(metadata_table),
        time=root.vector(EventListSlot.TIME, UINT, "time"),
        voltage=root.vector(EventListSlot.VOLTAGE, USHORT, "voltage"),
        channel=root.vector(EventListSlot.CHANNEL, UINT, "channel"),
    )
    _check_lengths(view.time, view.voltage, view.channel)

    LOG.debug(
        "Decoded event list: digitizer %d, frame %d, %d events",
        view.digitizer_id,
        view.metadata.frame_number,
        len(view),
    )
    return view.to_message() if copy else view


def validate(message: EventListMessage) -> list[Violation]:
    """Check an event list's structure without encoding it.

    Usable on messages assembled incrementally (e.g. via model_construct).

    Returns:
        Violations found; an empty list means the message can be encoded
    """
    violations: list[Violation] = []

    if getattr(message, "metadata", None) is None:
        violations.append(
            Violation("metadata", MissingRequiredFieldError(f"{TABLE_NAME}.metadata"))
        )

    lengths = {
        "time": len(message.time),
        "voltage": len(message.voltage),
        "channel": len(message.channel),
    }
    if len(set(lengths.values())) != 1:
        violations.append(Violation("time/voltage/channel", LengthMismatchError(lengths)))

    return violations
