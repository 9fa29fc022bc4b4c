"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from digiwire import AnalogTraceMessage, ChannelTrace, EventListMessage, FrameMetadata, GpsTime


@pytest.fixture
def gps_time() -> GpsTime:
    """Timestamp with every field set."""
    return GpsTime(
        year=24,
        day=300,
        hour=13,
        minute=5,
        second=59,
        millisecond=123,
        microsecond=456,
        nanosecond=789,
    )


@pytest.fixture
def frame_metadata(gps_time: GpsTime) -> FrameMetadata:
    """Metadata of a running, non-vetoed frame."""
    return FrameMetadata(
        timestamp=gps_time,
        period_number=2**40 + 7,
        protons_per_pulse=42,
        running=True,
        frame_number=1234,
        veto_flags=0,
    )


@pytest.fixture
def event_list_message(frame_metadata: FrameMetadata) -> EventListMessage:
    """Event list with three events."""
    return EventListMessage(
        digitizer_id=3,
        metadata=frame_metadata,
        time=[10, 250, 4_000_000_000],
        voltage=[410, 65535, 0],
        channel=[1, 17, 99],
    )


@pytest.fixture
def analog_trace_message(frame_metadata: FrameMetadata) -> AnalogTraceMessage:
    """Trace message whose channels have different trace lengths."""
    return AnalogTraceMessage(
        digitizer_id=5,
        metadata=frame_metadata,
        sample_rate=1_000_000_000,
        channels=[
            ChannelTrace(channel=0, voltage=[404, 405, 406, 407]),
            ChannelTrace(channel=1, voltage=[1, 2]),
            ChannelTrace(channel=7, voltage=[]),
        ],
    )
