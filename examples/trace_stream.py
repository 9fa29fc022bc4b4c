"""Digitizer trace streaming example.

Several simulated digitizers publish one analog trace message per frame onto a
shared queue. A consumer routes every buffer by its file identifier, skips
anything it does not recognise and checks that each digitizer's frames arrive
in order.

Run this example:
    python examples/trace_stream.py
"""

from __future__ import annotations

import logging
import time
from queue import Queue

import numpy as np

from digiwire import (
    AnalogTraceBuilder,
    DigiwireError,
    FrameMetadata,
    GpsTime,
    MessageKind,
    decode,
    identify,
)

NUM_DIGITIZERS = 4
NUM_FRAMES = 25
NUM_CHANNELS = 8
NUM_SAMPLES = 4096
SAMPLE_RATE = 1_000_000_000


def produce(digitizer_id: int, stream: Queue, rng: np.random.Generator) -> None:
    """Publish NUM_FRAMES trace messages for one digitizer."""
    builder = AnalogTraceBuilder(digitizer_id=digitizer_id, sample_rate=SAMPLE_RATE)
    for frame_number in range(NUM_FRAMES):
        builder.clear()
        builder.metadata = FrameMetadata(
            timestamp=GpsTime.now(), frame_number=frame_number, running=True
        )
        for channel in range(NUM_CHANNELS):
            samples = rng.integers(0, 1 << 16, size=NUM_SAMPLES, dtype=np.uint16)
            samples[0] = frame_number
            samples[1] = digitizer_id
            builder.add_channel(channel, samples)
        stream.put(builder.encode())


def main() -> None:
    """Run the streaming demo."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("digiwire Trace Streaming Demo")
    print("=" * 70)
    print()

    stream: Queue = Queue()
    rng = np.random.default_rng(0)

    start = time.perf_counter()
    for digitizer_id in range(NUM_DIGITIZERS):
        produce(digitizer_id, stream, rng)
    stream.put(b"\x0c\x00\x00\x00pl72\x00\x00\x00\x00")
    produced = time.perf_counter() - start

    last_frame: dict[int, int] = {}
    total_bytes = 0
    skipped = 0
    start = time.perf_counter()
    while not stream.empty():
        data = stream.get()
        if identify(data) is not MessageKind.ANALOG_TRACE:
            skipped += 1
            continue
        try:
            view = decode(data)
        except DigiwireError as err:
            print(f"Corrupt buffer: {err}")
            continue

        frame_number = view.metadata.frame_number
        previous = last_frame.get(view.digitizer_id, -1)
        if frame_number != previous + 1:
            print(f"Digitizer {view.digitizer_id}: frame {frame_number} after {previous}")
        for trace in view.channels:
            assert trace.voltage[0] == frame_number and trace.voltage[1] == view.digitizer_id
        last_frame[view.digitizer_id] = frame_number
        total_bytes += len(data)
    consumed = time.perf_counter() - start

    messages = NUM_DIGITIZERS * NUM_FRAMES
    print(f"Messages: {messages} ({total_bytes / 1e6:.1f} MB), skipped: {skipped}")
    print(f"Encode: {produced * 1e3:.1f} ms ({messages / produced:.0f} msg/s)")
    print(f"Decode: {consumed * 1e3:.1f} ms ({messages / consumed:.0f} msg/s)")
    print(f"Last frames: {last_frame}")


if __name__ == "__main__":
    main()
