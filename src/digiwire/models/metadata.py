"""Frame metadata shared by every digitizer message."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated, ClassVar

from pydantic import Field

from .base import WireModel
from .fields import BoundedInt, UInt8, UInt16, UInt32, UInt64

GPS_EPOCH_YEAR = 2000


class GpsTime(WireModel):
    """GPS-disciplined timestamp of the start of a frame.

    Attributes:
        year: Years since 2000
        day: Day of the year (1-366)
        hour: Hour of the day
        minute: Minute of the hour
        second: Second of the minute
        millisecond: Milliseconds within the second
        microsecond: Microseconds within the millisecond
        nanosecond: Nanoseconds within the microsecond
    """

    year: UInt8
    day: Annotated[int, BoundedInt(ge=1, le=366)]
    hour: Annotated[int, BoundedInt(ge=0, le=23)]
    minute: Annotated[int, BoundedInt(ge=0, le=59)]
    second: Annotated[int, BoundedInt(ge=0, le=59)]
    millisecond: Annotated[int, BoundedInt(ge=0, le=999)] = 0
    microsecond: Annotated[int, BoundedInt(ge=0, le=999)] = 0
    nanosecond: Annotated[int, BoundedInt(ge=0, le=999)] = 0

    wire_table: ClassVar[str | None] = "GpsTime"

    @classmethod
    def from_datetime(cls, value: datetime) -> GpsTime:
        """Build a timestamp from a datetime.

        Naive datetimes are taken to be UTC; aware ones are converted to UTC.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)

        return cls(
            year=value.year - GPS_EPOCH_YEAR,
            day=value.timetuple().tm_yday,
            hour=value.hour,
            minute=value.minute,
            second=value.second,
            millisecond=value.microsecond // 1000,
            microsecond=value.microsecond % 1000,
        )

    @classmethod
    def now(cls) -> GpsTime:
        """Timestamp for the current UTC time."""
        return cls.from_datetime(datetime.now(timezone.utc))

    def to_datetime(self) -> datetime:
        """Convert to an aware UTC datetime.

        datetime has microsecond resolution, so the nanosecond field is dropped.
        """
        start_of_year = datetime(GPS_EPOCH_YEAR + self.year, 1, 1, tzinfo=timezone.utc)
        return start_of_year + timedelta(
            days=self.day - 1,
            hours=self.hour,
            minutes=self.minute,
            seconds=self.second,
            milliseconds=self.millisecond,
            microseconds=self.microsecond,
        )


class FrameMetadata(WireModel):
    """Descriptor of the acquisition frame a message belongs to.

    frame_number increases monotonically within one digitizer's stream but is
    not unique across digitizers.
    """

    timestamp: GpsTime
    period_number: UInt64 = 0
    protons_per_pulse: UInt8 = 0
    running: bool = False
    frame_number: UInt32 = 0
    veto_flags: UInt16 = Field(default=0, description="Bitmask of veto reasons, 0 = no veto")

    wire_table: ClassVar[str | None] = "FrameMetadataV2"

    @property
    def vetoed(self) -> bool:
        """True when any veto bit is set."""
        return self.veto_flags != 0
