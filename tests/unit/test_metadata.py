"""Unit tests for GpsTime and FrameMetadata, as models and on the wire."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import flatbuffers
import pytest
from flatbuffers import encode, packer
from pydantic import ValidationError

from digiwire import FrameMetadata, GpsTime
from digiwire.codec.metadata import (
    GPS_TIME_SIZE,
    decode_gps_time,
    encode_gps_time,
    read_frame_metadata,
    write_frame_metadata,
)
from digiwire.codec.table import Table
from digiwire.exceptions import (
    DecodeError,
    EncodeError,
    MissingRequiredFieldError,
    TruncatedBufferError,
)


class TestGpsTimeModel:
    """Test GpsTime construction and conversion."""

    def test_ranges(self) -> None:
        """Test out-of-range fields are rejected at construction."""
        GpsTime(year=255, day=366, hour=23, minute=59, second=59, millisecond=999)

        with pytest.raises(ValidationError):
            GpsTime(year=24, day=0, hour=0, minute=0, second=0)

        with pytest.raises(ValidationError):
            GpsTime(year=24, day=1, hour=24, minute=0, second=0)

        with pytest.raises(ValidationError):
            GpsTime(year=256, day=1, hour=0, minute=0, second=0)

        with pytest.raises(ValidationError):
            GpsTime(year=24, day=1, hour=0, minute=0, second=0, nanosecond=1000)

    def test_frozen(self, gps_time: GpsTime) -> None:
        """Test timestamps are immutable."""
        with pytest.raises(ValidationError):
            gps_time.hour = 1  # type: ignore[misc]

    def test_from_datetime(self) -> None:
        """Test conversion from an aware UTC datetime."""
        value = datetime(2024, 2, 29, 12, 30, 15, 123456, tzinfo=timezone.utc)
        timestamp = GpsTime.from_datetime(value)

        assert timestamp.year == 24
        assert timestamp.day == 60
        assert (timestamp.hour, timestamp.minute, timestamp.second) == (12, 30, 15)
        assert timestamp.millisecond == 123
        assert timestamp.microsecond == 456
        assert timestamp.nanosecond == 0
        assert timestamp.to_datetime() == value

    def test_from_naive_datetime_is_utc(self) -> None:
        """Test naive datetimes are treated as UTC."""
        naive = datetime(2023, 12, 31, 23, 59, 59)
        timestamp = GpsTime.from_datetime(naive)

        assert timestamp.day == 365
        assert timestamp.to_datetime() == naive.replace(tzinfo=timezone.utc)

    def test_from_aware_datetime_converts_to_utc(self) -> None:
        """Test aware datetimes are converted to UTC first."""
        local = datetime(2024, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        timestamp = GpsTime.from_datetime(local)

        assert timestamp.year == 23
        assert timestamp.day == 365
        assert timestamp.hour == 23

    def test_now(self) -> None:
        """Test now() is close to the current time."""
        before = datetime.now(timezone.utc).replace(microsecond=0)
        timestamp = GpsTime.now()
        after = datetime.now(timezone.utc) + timedelta(seconds=1)

        assert before <= timestamp.to_datetime() <= after

    def test_vetoed(self, gps_time: GpsTime) -> None:
        """Test the veto bitmask helper."""
        assert not FrameMetadata(timestamp=gps_time).vetoed
        assert FrameMetadata(timestamp=gps_time, veto_flags=0b100).vetoed


class TestGpsTimeCodec:
    """Test the fixed GpsTime struct layout."""

    def test_size(self) -> None:
        """Test 12 bytes of fields plus two alignment pad bytes."""
        assert GPS_TIME_SIZE == 14

    def test_layout(self, gps_time: GpsTime) -> None:
        """Test exact field placement and byte order."""
        assert encode_gps_time(gps_time) == bytes(
            [
                0x18, 0x00,  # year 24, pad
                0x2C, 0x01,  # day 300
                0x0D, 0x05, 0x3B, 0x00,  # 13:05:59, pad
                0x7B, 0x00,  # 123 ms
                0xC8, 0x01,  # 456 us
                0x15, 0x03,  # 789 ns
            ]
        )  # fmt: skip

    def test_decode(self, gps_time: GpsTime) -> None:
        """Test decoding at an offset."""
        data = b"\xff" * 3 + encode_gps_time(gps_time)

        assert decode_gps_time(data, offset=3) == gps_time

    def test_truncated(self, gps_time: GpsTime) -> None:
        """Test fewer than GPS_TIME_SIZE bytes."""
        data = encode_gps_time(gps_time)

        with pytest.raises(TruncatedBufferError):
            decode_gps_time(data[:-1])

        with pytest.raises(TruncatedBufferError):
            decode_gps_time(data, offset=1)

    def test_out_of_range_on_wire(self, gps_time: GpsTime) -> None:
        """Test decoded values are range-checked."""
        data = bytearray(encode_gps_time(gps_time))
        data[2:4] = (0).to_bytes(2, "little")  # day 0

        with pytest.raises(DecodeError, match="GpsTime"):
            decode_gps_time(bytes(data))


class TestFrameMetadataTable:
    """Test the FrameMetadataV2 table on its own."""

    def _write(self, metadata: FrameMetadata) -> tuple[bytes, int]:
        builder = flatbuffers.Builder(0)
        builder.Finish(write_frame_metadata(builder, metadata))
        data = bytes(builder.Output())
        return data, encode.Get(packer.uoffset, data, 0)

    def test_roundtrip(self, frame_metadata: FrameMetadata) -> None:
        """Test all fields survive."""
        data, position = self._write(frame_metadata)
        decoded = read_frame_metadata(Table(data, position, "FrameMetadataV2"))

        assert decoded == frame_metadata

    def test_inline_timestamp(self, frame_metadata: FrameMetadata) -> None:
        """Test the struct in the table matches the standalone layout and ends the buffer."""
        data, position = self._write(frame_metadata)
        table = Table(data, position, "FrameMetadataV2")
        packed = encode_gps_time(frame_metadata.timestamp)

        assert table.struct_bytes(0, GPS_TIME_SIZE, "timestamp") == packed
        assert table.field_position(0) % 2 == 0
        assert data.endswith(packed)

    def test_defaults_are_omitted(self, gps_time: GpsTime) -> None:
        """Test default scalars take no space and read back as defaults."""
        data, position = self._write(FrameMetadata(timestamp=gps_time))
        table = Table(data, position, "FrameMetadataV2")

        for slot in range(1, 6):
            assert table.field_position(slot) is None
        assert read_frame_metadata(table) == FrameMetadata(timestamp=gps_time)

    def test_out_of_range_scalar(self, gps_time: GpsTime) -> None:
        """Test unvalidated values are still range-checked when written."""
        unchecked = FrameMetadata.model_construct(
            timestamp=gps_time,
            period_number=0,
            protons_per_pulse=300,
            running=False,
            frame_number=0,
            veto_flags=0,
        )

        with pytest.raises(EncodeError, match="FrameMetadataV2.protons_per_pulse"):
            self._write(unchecked)

    def test_missing_timestamp_on_encode(self) -> None:
        """Test a metadata object without a timestamp cannot be written."""
        incomplete = FrameMetadata.model_construct(timestamp=None, frame_number=1)

        with pytest.raises(MissingRequiredFieldError, match="timestamp"):
            self._write(incomplete)

    def test_missing_timestamp_on_decode(self, frame_metadata: FrameMetadata) -> None:
        """Test an absent timestamp slot is a missing required field."""
        data, position = self._write(frame_metadata)
        table = Table(data, position, "FrameMetadataV2")

        patched = bytearray(data)
        entry = table.vtable_entry_position(0)
        patched[entry : entry + 2] = b"\x00\x00"

        with pytest.raises(MissingRequiredFieldError) as excinfo:
            read_frame_metadata(Table(patched, position, "FrameMetadataV2"))
        assert excinfo.value.field == "FrameMetadataV2.timestamp"
