"""Incremental producer-side assembly of digitizer messages.

A producer typically fills one message per frame from live digitizer
readings, encodes it, hands the bytes to the transport and then reuses the
builder for the next frame:

    >>> builder = AnalogTraceBuilder(digitizer_id=4, sample_rate=1_000_000_000)
    >>> for frame_number in range(3):
    ...     builder.clear()
    ...     builder.metadata = FrameMetadata(timestamp=GpsTime.now(), frame_number=frame_number)
    ...     for channel, samples in enumerate(read_channels()):
    ...         builder.add_channel(channel, samples)
    ...     publish(builder.encode())

Builders are mutable and meant to be owned by a single producer.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .codec import analog_trace, event_list
from .codec.validation import Violation, raise_for_violations
from .exceptions import LengthMismatchError, MissingRequiredFieldError
from .models import AnalogTraceMessage, ChannelTrace, EventListMessage, FrameMetadata


def _as_list(values: Sequence[int] | np.ndarray) -> list[int]:
    if isinstance(values, np.ndarray):
        return values.tolist()
    return list(values)


class EventListBuilder:
    """Accumulates detected events for one frame.

    Example:
        >>> builder = EventListBuilder(digitizer_id=2, metadata=metadata)
        >>> builder.add_event(time=120, voltage=930, channel=17)
        >>> builder.extend(times, voltages, channels)
        >>> data = builder.encode()
    """

    def __init__(self, digitizer_id: int, metadata: FrameMetadata | None = None) -> None:
        self.digitizer_id = digitizer_id
        self.metadata = metadata
        self._time: list[int] = []
        self._voltage: list[int] = []
        self._channel: list[int] = []

    def __len__(self) -> int:
        return len(self._time)

    def add_event(self, time: int, voltage: int, channel: int) -> None:
        """Append one event."""
        self._time.append(time)
        self._voltage.append(voltage)
        self._channel.append(channel)

    def extend(
        self,
        times: Sequence[int] | np.ndarray,
        voltages: Sequence[int] | np.ndarray,
        channels: Sequence[int] | np.ndarray,
    ) -> None:
        """Append aligned arrays of events.

        Raises:
            LengthMismatchError: If the arrays differ in length; nothing is appended
        """
        lengths = {"time": len(times), "voltage": len(voltages), "channel": len(channels)}
        if len(set(lengths.values())) != 1:
            raise LengthMismatchError(lengths)
        self._time.extend(_as_list(times))
        self._voltage.extend(_as_list(voltages))
        self._channel.extend(_as_list(channels))

    def clear(self) -> None:
        """Drop all events, keeping digitizer_id and metadata."""
        self._time.clear()
        self._voltage.clear()
        self._channel.clear()

    def _construct(self) -> EventListMessage:
        return EventListMessage.model_construct(
            digitizer_id=self.digitizer_id,
            metadata=self.metadata,
            time=tuple(self._time),
            voltage=tuple(self._voltage),
            channel=tuple(self._channel),
        )

    def validate(self) -> list[Violation]:
        """Check the message assembled so far."""
        return event_list.validate(self._construct())

    def build(self) -> EventListMessage:
        """Return the assembled message.

        Raises:
            MissingRequiredFieldError: If no metadata was set
            pydantic.ValidationError: If a value is out of range
        """
        raise_for_violations(self.validate())
        return EventListMessage(
            digitizer_id=self.digitizer_id,
            metadata=self.metadata,
            time=self._time,
            voltage=self._voltage,
            channel=self._channel,
        )

    def encode(self) -> bytes:
        """Encode the assembled message without building a model first."""
        if self.metadata is None:
            raise MissingRequiredFieldError(f"{event_list.TABLE_NAME}.metadata")
        return event_list.encode(
            self.digitizer_id, self.metadata, self._time, self._voltage, self._channel
        )


class AnalogTraceBuilder:
    """Accumulates per-channel waveforms for one frame.

    Voltage arrays are kept as given until encode(), so numpy arrays from the
    acquisition side are written without an intermediate Python list.
    """

    def __init__(
        self,
        digitizer_id: int,
        sample_rate: int,
        metadata: FrameMetadata | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self.digitizer_id = digitizer_id
        self.sample_rate = sample_rate
        self.metadata = metadata
        self.strict = strict
        self._channels: list[tuple[int, np.ndarray]] = []

    def __len__(self) -> int:
        return len(self._channels)

    def add_channel(self, channel: int, voltage: Sequence[int] | np.ndarray) -> None:
        """Append the trace of one channel.

        The samples are copied, so the caller may reuse its array for the next channel.
        """
        self._channels.append((channel, np.array(voltage, copy=True)))

    def clear(self) -> None:
        """Drop all traces, keeping digitizer_id, sample_rate and metadata."""
        self._channels.clear()

    def _construct(self) -> AnalogTraceMessage:
        return AnalogTraceMessage.model_construct(
            digitizer_id=self.digitizer_id,
            metadata=self.metadata,
            sample_rate=self.sample_rate,
            channels=tuple(
                ChannelTrace.model_construct(channel=channel, voltage=tuple(_as_list(voltage)))
                for channel, voltage in self._channels
            ),
        )

    def validate(self) -> list[Violation]:
        """Check the message assembled so far."""
        return analog_trace.validate(self._construct(), strict=self.strict)

    def build(self) -> AnalogTraceMessage:
        """Return the assembled message.

        Raises:
            ZeroSampleRateError: If the sample rate is 0
            DuplicateChannelError: If strict and a channel repeats
            MissingRequiredFieldError: If no metadata was set
            pydantic.ValidationError: If a value is out of range
        """
        raise_for_violations(self.validate())
        return AnalogTraceMessage(
            digitizer_id=self.digitizer_id,
            metadata=self.metadata,
            sample_rate=self.sample_rate,
            channels=[
                ChannelTrace(channel=channel, voltage=_as_list(voltage))
                for channel, voltage in self._channels
            ],
        )

    def encode(self) -> bytes:
        """Encode the assembled message without building a model first."""
        if self.metadata is None:
            raise MissingRequiredFieldError(f"{analog_trace.TABLE_NAME}.metadata")
        return analog_trace.encode(
            self.digitizer_id,
            self.metadata,
            self.sample_rate,
            self._channels,
            strict=self.strict,
        )
