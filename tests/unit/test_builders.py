"""Unit tests for the producer-side builders."""

from __future__ import annotations

import numpy as np
import pytest
from pydantic import ValidationError

from digiwire import (
    AnalogTraceBuilder,
    AnalogTraceMessage,
    EventListBuilder,
    EventListMessage,
    FrameMetadata,
    analog_trace,
    decode,
    event_list,
)
from digiwire.exceptions import (
    DuplicateChannelError,
    LengthMismatchError,
    MissingRequiredFieldError,
    ZeroSampleRateError,
)


class TestEventListBuilder:
    """Test EventListBuilder."""

    def test_add_and_extend(self, frame_metadata: FrameMetadata) -> None:
        """Test events accumulate in order."""
        builder = EventListBuilder(digitizer_id=2, metadata=frame_metadata)
        builder.add_event(time=120, voltage=930, channel=17)
        builder.extend(np.array([130, 140]), [931, 932], (18, 19))

        assert len(builder) == 3
        message = builder.build()
        assert isinstance(message, EventListMessage)
        assert message.time == (120, 130, 140)
        assert message.voltage == (930, 931, 932)
        assert message.channel == (17, 18, 19)

    def test_encode_matches_codec(self, frame_metadata: FrameMetadata) -> None:
        """Test builder output equals the codec's."""
        builder = EventListBuilder(digitizer_id=2, metadata=frame_metadata)
        builder.extend([1, 2], [3, 4], [5, 6])

        assert builder.encode() == event_list.encode(2, frame_metadata, [1, 2], [3, 4], [5, 6])
        assert builder.encode() == event_list.encode_message(builder.build())

    def test_extend_mismatch_appends_nothing(self, frame_metadata: FrameMetadata) -> None:
        """Test a failed extend leaves the builder unchanged."""
        builder = EventListBuilder(digitizer_id=2, metadata=frame_metadata)
        builder.add_event(1, 2, 3)

        with pytest.raises(LengthMismatchError):
            builder.extend([1, 2], [3], [5, 6])
        assert len(builder) == 1
        assert builder.validate() == []

    def test_missing_metadata(self) -> None:
        """Test metadata must be set before building."""
        builder = EventListBuilder(digitizer_id=2)
        builder.add_event(1, 2, 3)

        (violation,) = builder.validate()
        assert violation.error is MissingRequiredFieldError

        with pytest.raises(MissingRequiredFieldError):
            builder.build()
        with pytest.raises(MissingRequiredFieldError):
            builder.encode()

    def test_out_of_range_value(self, frame_metadata: FrameMetadata) -> None:
        """Test building runs model validation."""
        builder = EventListBuilder(digitizer_id=2, metadata=frame_metadata)
        builder.add_event(time=-1, voltage=0, channel=0)

        with pytest.raises(ValidationError):
            builder.build()

    def test_clear_keeps_settings(self, frame_metadata: FrameMetadata) -> None:
        """Test clear() drops events only."""
        builder = EventListBuilder(digitizer_id=2, metadata=frame_metadata)
        builder.add_event(1, 2, 3)
        builder.clear()

        assert len(builder) == 0
        message = decode(builder.encode(), copy=True)
        assert message.digitizer_id == 2
        assert message.metadata == frame_metadata
        assert message.event_count == 0


class TestAnalogTraceBuilder:
    """Test AnalogTraceBuilder."""

    def test_build(self, frame_metadata: FrameMetadata) -> None:
        """Test traces accumulate in order."""
        builder = AnalogTraceBuilder(digitizer_id=4, sample_rate=1000, metadata=frame_metadata)
        builder.add_channel(0, np.array([1, 2, 3], dtype=np.uint16))
        builder.add_channel(1, [4])

        assert len(builder) == 2
        message = builder.build()
        assert isinstance(message, AnalogTraceMessage)
        assert message.channel_numbers() == [0, 1]
        assert message.channels[0].voltage == (1, 2, 3)

    def test_encode_matches_codec(self, frame_metadata: FrameMetadata) -> None:
        """Test builder output equals the codec's."""
        samples = np.arange(32, dtype=np.uint16)
        builder = AnalogTraceBuilder(digitizer_id=4, sample_rate=1000, metadata=frame_metadata)
        builder.add_channel(3, samples)

        assert builder.encode() == analog_trace.encode(4, frame_metadata, 1000, [(3, samples)])
        assert builder.encode() == analog_trace.encode_message(builder.build())

    def test_add_channel_copies_samples(self, frame_metadata: FrameMetadata) -> None:
        """Test reusing the sample array after add_channel does not change the output."""
        samples = np.arange(8, dtype=np.uint16)
        builder = AnalogTraceBuilder(digitizer_id=4, sample_rate=1000, metadata=frame_metadata)
        builder.add_channel(0, samples)
        expected = analog_trace.encode(4, frame_metadata, 1000, [(0, samples.copy())])

        samples[:] = 0xFFFF
        builder.add_channel(1, samples)

        view = analog_trace.decode(builder.encode())
        assert view.channels[0].voltage.tolist() == list(range(8))
        assert view.channels[1].voltage.tolist() == [0xFFFF] * 8

        builder.clear()
        samples[:] = np.arange(8)
        builder.add_channel(0, samples)
        samples[0] = 99
        assert builder.encode() == expected

    def test_zero_sample_rate(self, frame_metadata: FrameMetadata) -> None:
        """Test zero sample rate fails validation and encoding."""
        builder = AnalogTraceBuilder(digitizer_id=4, sample_rate=0, metadata=frame_metadata)

        with pytest.raises(ZeroSampleRateError):
            builder.build()
        with pytest.raises(ZeroSampleRateError):
            builder.encode()

    def test_strict_duplicates(self, frame_metadata: FrameMetadata) -> None:
        """Test strict builders refuse repeated channels."""
        builder = AnalogTraceBuilder(
            digitizer_id=4, sample_rate=1000, metadata=frame_metadata, strict=True
        )
        builder.add_channel(1, [1])
        builder.add_channel(1, [2])

        (violation,) = builder.validate()
        assert violation.fatal
        with pytest.raises(DuplicateChannelError):
            builder.build()
        with pytest.raises(DuplicateChannelError):
            builder.encode()

    def test_lenient_duplicates(self, frame_metadata: FrameMetadata) -> None:
        """Test lenient builders keep repeated channels."""
        builder = AnalogTraceBuilder(digitizer_id=4, sample_rate=1000, metadata=frame_metadata)
        builder.add_channel(1, [1])
        builder.add_channel(1, [2])

        (violation,) = builder.validate()
        assert not violation.fatal
        assert builder.build().channel_numbers() == [1, 1]

    def test_reuse_across_frames(self, frame_metadata: FrameMetadata) -> None:
        """Test one builder producing consecutive frames."""
        builder = AnalogTraceBuilder(digitizer_id=4, sample_rate=1000)
        frames = []
        for frame_number in range(3):
            builder.clear()
            builder.metadata = frame_metadata.model_copy(update={"frame_number": frame_number})
            builder.add_channel(0, [frame_number])
            frames.append(decode(builder.encode()))

        assert [view.metadata.frame_number for view in frames] == [0, 1, 2]
        assert [view.channels[0].voltage.tolist() for view in frames] == [[0], [1], [2]]
