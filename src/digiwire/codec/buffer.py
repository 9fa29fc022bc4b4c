"""Wire scalar types, value checks and bounds checks.

The byte layout itself is produced and read by the ``flatbuffers`` runtime.
This module adds what the runtime leaves to generated code: typed range
checks before a value is written, conversion of Python sequences to the
little-endian numpy arrays CreateNumpyVector expects, and bounds checks so
that a short or corrupted buffer surfaces as a TruncatedBufferError instead
of a struct or numpy error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from flatbuffers import number_types as N

from ..exceptions import EncodeError, TruncatedBufferError

Buffer = bytes | bytearray | memoryview


@dataclass(frozen=True)
class Scalar:
    """A fixed-width wire scalar.

    Attributes:
        name: Schema type name
        flags: flatbuffers number type (width, range, packer)
        slot_method: Builder method that adds the scalar as a table field
    """

    name: str
    flags: Any
    slot_method: str

    @property
    def size(self) -> int:
        """Width in bytes; also the alignment of the scalar."""
        return self.flags.bytewidth

    @property
    def minimum(self) -> int:
        return int(self.flags.min_val)

    @property
    def maximum(self) -> int:
        return int(self.flags.max_val)

    @property
    def dtype(self) -> np.dtype[Any]:
        """Little-endian numpy dtype matching the scalar."""
        return N.to_numpy_type(self.flags)


BOOL = Scalar("bool", N.BoolFlags, "PrependBoolSlot")
UBYTE = Scalar("ubyte", N.Uint8Flags, "PrependUint8Slot")
USHORT = Scalar("ushort", N.Uint16Flags, "PrependUint16Slot")
UINT = Scalar("uint", N.Uint32Flags, "PrependUint32Slot")
ULONG = Scalar("ulong", N.Uint64Flags, "PrependUint64Slot")
SOFFSET = Scalar("soffset", N.SOffsetTFlags, "PrependInt32Slot")
UOFFSET = Scalar("uoffset", N.UOffsetTFlags, "PrependUOffsetTRelativeSlot")
VOFFSET = Scalar("voffset", N.VOffsetTFlags, "PrependUint16Slot")


def check_scalar(scalar: Scalar, value: Any, field: str | None = None) -> None:
    """Check that ``value`` can be written as ``scalar``.

    Raises:
        EncodeError: If the value has the wrong type or is out of range
    """
    label = field or scalar.name
    if scalar is BOOL:
        if not isinstance(value, bool):
            raise EncodeError(f"Field {label}: expected bool, got {type(value).__name__}")
        return

    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise EncodeError(f"Field {label}: expected int, got {type(value).__name__}")
    if value < scalar.minimum or value > scalar.maximum:
        raise EncodeError(
            f"Field {label}: value {value} out of bounds [{scalar.minimum}, {scalar.maximum}]"
        )


def wire_array(scalar: Scalar, values: Any, field: str | None = None) -> np.ndarray:
    """Convert a sequence of integers to a flat little-endian array of ``scalar``.

    Args:
        scalar: Element wire type
        values: Python sequence or numpy array of integers
        field: Field name used in error messages

    Raises:
        EncodeError: If an element is not an integer or is out of range
    """
    label = field or scalar.name
    array = np.asarray(values)
    if array.ndim != 1:
        raise EncodeError(f"Field {label}: expected a flat sequence, got {array.ndim} dims")
    if array.size == 0:
        return np.empty(0, dtype=scalar.dtype)

    if array.dtype.kind not in "iu":
        raise EncodeError(f"Field {label}: expected integers, got dtype {array.dtype}")

    lowest = int(array.min())
    highest = int(array.max())
    if lowest < scalar.minimum or highest > scalar.maximum:
        bad = lowest if lowest < scalar.minimum else highest
        raise EncodeError(
            f"Field {label}: value {bad} out of bounds [{scalar.minimum}, {scalar.maximum}]"
        )

    return np.ascontiguousarray(array, dtype=scalar.dtype)


def byte_view(data: Buffer) -> memoryview:
    """Flat unsigned-byte memoryview of any C-contiguous bytes-like object."""
    view = memoryview(data)
    if view.ndim != 1 or view.format != "B":
        view = view.cast("B")
    return view


def require(data: memoryview, position: int, size: int, what: str) -> None:
    """Check that ``size`` bytes starting at ``position`` are inside ``data``.

    Raises:
        TruncatedBufferError: If any of the bytes are out of range
    """
    if position < 0 or size < 0 or position + size > len(data):
        raise TruncatedBufferError(
            f"Truncated data while reading {what}: need bytes "
            f"[{position}, {position + size}), buffer has {len(data)}"
        )
