#!/usr/bin/env python3
"""Basic usage example for digiwire.

This example demonstrates:
1. Building frame metadata and an event list message with Pydantic models
2. Encoding to the dev2 wire format
3. Decoding as a zero-copy view and as an owned copy
4. Validating a message before encoding it
"""

from __future__ import annotations

from digiwire import (
    EventListMessage,
    FrameMetadata,
    GpsTime,
    decode,
    encode,
    event_list,
    identify,
)


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("digiwire Basic Usage Example")
    print("=" * 60)
    print()

    # Create a message instance
    print("1. Creating an event list message...")
    metadata = FrameMetadata(
        timestamp=GpsTime.now(),
        period_number=1,
        protons_per_pulse=40,
        running=True,
        frame_number=1523,
    )
    msg = EventListMessage(
        digitizer_id=3,
        metadata=metadata,
        time=[112, 1_740, 20_551, 88_012],
        voltage=[1_020, 998, 4_410, 1_015],
        channel=[2, 2, 7, 5],
    )

    print(f"   Digitizer: {msg.digitizer_id}")
    print(f"   Frame: {msg.metadata.frame_number} at {msg.metadata.timestamp.to_datetime()}")
    print(f"   Events: {msg.event_count}")
    print()

    # Encode the message
    print("2. Encoding to the dev2 wire format...")
    encoded_data = encode(msg)

    print(f"   Encoded size: {len(encoded_data)} bytes")
    print(f"   File identifier: {encoded_data[4:8]!r}")
    print(f"   Identified as: {identify(encoded_data).name}")
    print()

    # Decode without copying
    print("3. Decoding as a zero-copy view...")
    view = decode(encoded_data)

    print(f"   time:    {view.time} ({view.time.dtype})")
    print(f"   voltage: {view.voltage} ({view.voltage.dtype})")
    print(f"   channel: {view.channel} ({view.channel.dtype})")
    print(f"   Writable: {view.time.flags.writeable}")
    print()

    # Verify round-trip
    print("4. Verifying round-trip...")
    decoded_msg = decode(encoded_data, copy=True)
    if decoded_msg == msg:
        print("   ✓ Round-trip successful! Messages match.")
    else:
        print("   ✗ Round-trip failed! Messages don't match.")
    print()

    # Validate a broken message
    print("5. Validating a message with misaligned arrays...")
    broken = EventListMessage.model_construct(
        digitizer_id=3, metadata=metadata, time=(1, 2), voltage=(10,), channel=(5, 6)
    )
    for violation in event_list.validate(broken):
        print(f"   {violation.error.__name__}: {violation}")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
