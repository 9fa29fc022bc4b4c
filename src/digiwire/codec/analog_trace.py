"""Codec for DigitizerAnalogTraceMessage buffers (file identifier ``dat2``).

A trace message carries one sampled waveform per channel plus the sample
rate shared by all of them. Trace lengths are independent per channel.

Two rules go beyond what the wire layout enforces:

- a sample rate of zero is always rejected (the traces would have no timebase)
- repeated channel numbers are rejected in strict mode and logged otherwise
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable, Sequence, Union

import flatbuffers
import numpy as np

from ..exceptions import DuplicateChannelError, MissingRequiredFieldError, ZeroSampleRateError
from ..models import ANALOG_TRACE_IDENTIFIER, AnalogTraceMessage, ChannelTrace, FrameMetadata
from .buffer import UBYTE, UINT, ULONG, USHORT
from .metadata import FRAME_METADATA_TABLE, read_frame_metadata, write_frame_metadata
from .schema import ANALOG_TRACE, CHANNEL_TRACE, AnalogTraceSlot, ChannelTraceSlot
from .table import (
    Table,
    add_scalar,
    create_table_vector,
    create_vector,
    finish,
    new_builder,
    read_root,
)
from .validation import Violation, raise_for_violations

LOG = logging.getLogger(__name__)

TABLE_NAME = AnalogTraceMessage.wire_table or ANALOG_TRACE
CHANNEL_TABLE_NAME = ChannelTrace.wire_table or CHANNEL_TRACE
IDENTIFIER = ANALOG_TRACE_IDENTIFIER

ChannelInput = Union[ChannelTrace, tuple[int, Union[Sequence[int], np.ndarray]]]


@dataclass(frozen=True, eq=False)
class ChannelTraceView:
    """Zero-copy view of one channel's waveform."""

    channel: int
    voltage: np.ndarray

    def __len__(self) -> int:
        return len(self.voltage)

    def to_trace(self) -> ChannelTrace:
        """Copy the view into an owned ChannelTrace."""
        return ChannelTrace(channel=self.channel, voltage=self.voltage.tolist())


@dataclass(frozen=True, eq=False)
class AnalogTraceView:
    """Zero-copy view of a decoded trace message.

    The voltage arrays are read-only numpy views into the buffer passed to
    decode() and are only valid while that buffer is. Call to_message() for
    an owned copy.
    """

    digitizer_id: int
    metadata: FrameMetadata
    sample_rate: int
    channels: tuple[ChannelTraceView, ...]

    def __len__(self) -> int:
        return len(self.channels)

    def trace(self, channel: int) -> ChannelTraceView | None:
        """Return the first trace recorded for ``channel``, if any."""
        for trace in self.channels:
            if trace.channel == channel:
                return trace
        return None

    def to_message(self) -> AnalogTraceMessage:
        """Copy the view into an owned, immutable message."""
        return AnalogTraceMessage(
            digitizer_id=self.digitizer_id,
            metadata=self.metadata,
            sample_rate=self.sample_rate,
            channels=[trace.to_trace() for trace in self.channels],
        )


def _channel_pairs(channels: Iterable[ChannelInput]) -> list[tuple[int, Any]]:
    pairs = []
    for item in channels:
        if isinstance(item, ChannelTrace):
            pairs.append((item.channel, item.voltage))
        else:
            channel, voltage = item
            pairs.append((channel, voltage))
    return pairs


def duplicate_channels(channels: Iterable[int]) -> list[int]:
    """Return the channel numbers that appear more than once, sorted."""
    counts = Counter(channels)
    return sorted(channel for channel, count in counts.items() if count > 1)


def _write_channel_trace(builder: flatbuffers.Builder, channel: int, voltage: Any) -> int:
    voltage_offset = create_vector(builder, USHORT, voltage, f"{CHANNEL_TABLE_NAME}.voltage")
    builder.StartObject(len(ChannelTraceSlot))
    add_scalar(
        builder, ChannelTraceSlot.CHANNEL, UINT, channel, field=f"{CHANNEL_TABLE_NAME}.channel"
    )
    builder.PrependUOffsetTRelativeSlot(ChannelTraceSlot.VOLTAGE, voltage_offset, 0)
    return builder.EndObject()


def encode(
    digitizer_id: int,
    metadata: FrameMetadata,
    sample_rate: int,
    channels: Iterable[ChannelInput],
    *,
    strict: bool = False,
) -> bytes:
    """Encode per-channel traces to a ``dat2`` buffer.

    Args:
        digitizer_id: Source digitizer (u8)
        metadata: Frame descriptor
        sample_rate: Samples per second (u64, non-zero)
        channels: ChannelTrace models or (channel, voltage) pairs
        strict: If True, reject repeated channel numbers

    Returns:
        Encoded buffer

    Raises:
        ZeroSampleRateError: If sample_rate is 0
        DuplicateChannelError: If strict and a channel number repeats
        MissingRequiredFieldError: If metadata is None
        EncodeError: If a value does not fit its wire width

    Example:
        >>> data = encode(0, metadata, 1_000_000_000, [(0, samples_0), (1, samples_1)])
    """
    if sample_rate == 0:
        raise ZeroSampleRateError(f"{TABLE_NAME}.sample_rate must be non-zero")
    if metadata is None:
        raise MissingRequiredFieldError(f"{TABLE_NAME}.metadata")

    pairs = _channel_pairs(channels)
    duplicates = duplicate_channels(channel for channel, _ in pairs)
    if duplicates:
        if strict:
            raise DuplicateChannelError(duplicates)
        LOG.warning(
            "Digitizer %d frame %d repeats channels %s",
            digitizer_id,
            metadata.frame_number,
            duplicates,
        )

    builder = new_builder()
    metadata_offset = write_frame_metadata(builder, metadata)
    traces = [_write_channel_trace(builder, channel, voltage) for channel, voltage in pairs]
    channels_offset = create_table_vector(builder, traces)

    builder.StartObject(len(AnalogTraceSlot))
    add_scalar(
        builder,
        AnalogTraceSlot.DIGITIZER_ID,
        UBYTE,
        digitizer_id,
        field=f"{TABLE_NAME}.digitizer_id",
    )
    builder.PrependUOffsetTRelativeSlot(AnalogTraceSlot.METADATA, metadata_offset, 0)
    add_scalar(
        builder, AnalogTraceSlot.SAMPLE_RATE, ULONG, sample_rate, field=f"{TABLE_NAME}.sample_rate"
    )
    builder.PrependUOffsetTRelativeSlot(AnalogTraceSlot.CHANNELS, channels_offset, 0)
    data = finish(builder, builder.EndObject(), IDENTIFIER)
    LOG.debug(
        "Encoded analog trace: digitizer %d, frame %d, %d channels, %d bytes",
        digitizer_id,
        metadata.frame_number,
        len(pairs),
        len(data),
    )
    return data


def encode_message(message: AnalogTraceMessage, *, strict: bool = False) -> bytes:
    """Encode an AnalogTraceMessage model.

    Raises:
        ZeroSampleRateError: If the sample rate is 0
        DuplicateChannelError: If strict and a channel number repeats
        MissingRequiredFieldError: If metadata is missing
        EncodeError: If a value does not fit its wire width
    """
    raise_for_violations(validate(message, strict=strict))
    return encode(
        message.digitizer_id,
        message.metadata,
        message.sample_rate,
        message.channels,
        strict=strict,
    )


def _read_trace(table: Table) -> ChannelTraceView:
    return ChannelTraceView(
        channel=table.scalar(ChannelTraceSlot.CHANNEL, UINT, "channel"),
        voltage=table.vector(ChannelTraceSlot.VOLTAGE, USHORT, "voltage"),
    )


def decode(
    data: bytes | bytearray | memoryview, *, copy: bool = False
) -> AnalogTraceView | AnalogTraceMessage:
    """Decode a ``dat2`` buffer.

    Args:
        data: Encoded buffer
        copy: If False, return an AnalogTraceView borrowing ``data``; if True,
            return an owned AnalogTraceMessage that does not reference ``data``

    Returns:
        View or owned message

    Raises:
        BadIdentifierError: If the buffer is not a trace message
        TruncatedBufferError: If the buffer is shorter than its declared shape
        MissingRequiredFieldError: If the frame metadata is absent or null
        DecodeError: If a decoded field is out of range or an offset is invalid
    """
    root = read_root(data, IDENTIFIER, TABLE_NAME)
    metadata_table = root.table(
        AnalogTraceSlot.METADATA, FRAME_METADATA_TABLE, "metadata", required=True
    )

    view = AnalogTraceView(
        digitizer_id=root.scalar(AnalogTraceSlot.DIGITIZER_ID, UBYTE, "digitizer_id"),
        metadata=read_frame_metadata(metadata_table),
        sample_rate=root.scalar(AnalogTraceSlot.SAMPLE_RATE, ULONG, "sample_rate"),
        channels=tuple(
            _read_trace(table)
            for table in root.tables(AnalogTraceSlot.CHANNELS, CHANNEL_TABLE_NAME, "channels")
        ),
    )

    LOG.debug(
        "Decoded analog trace: digitizer %d, frame %d, %d channels",
        view.digitizer_id,
        view.metadata.frame_number,
        len(view),
    )
    return view.to_message() if copy else view


def validate(message: AnalogTraceMessage, *, strict: bool = False) -> list[Violation]:
    """Check a trace message's structure without encoding it.

    Args:
        message: Message to check
        strict: If True, repeated channel numbers are fatal

    Returns:
        Violations found; repeated channels are reported with fatal=strict
    """
    violations: list[Violation] = []

    if getattr(message, "metadata", None) is None:
        violations.append(
            Violation("metadata", MissingRequiredFieldError(f"{TABLE_NAME}.metadata"))
        )

    if message.sample_rate == 0:
        violations.append(
            Violation(
                "sample_rate", ZeroSampleRateError(f"{TABLE_NAME}.sample_rate must be non-zero")
            )
        )

    duplicates = duplicate_channels(trace.channel for trace in message.channels)
    if duplicates:
        violations.append(Violation("channels", DuplicateChannelError(duplicates), fatal=strict))

    return violations
