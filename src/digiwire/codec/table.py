"""Building and reading FlatBuffers tables with the ``flatbuffers`` runtime.

Encoding goes through ``flatbuffers.Builder`` the way generated code does:
children (vectors, sub-tables) first, then ``StartObject`` / ``Prepend*Slot``
/ ``EndObject`` for the table itself, then ``Finish`` with the 4-byte file
identifier.

Decoding goes through ``flatbuffers.table.Table``. The runtime trusts the
buffer, so every access made here is bounds-checked first, and offsets that
cannot be valid (null, or pointing back into the referencing field) are
rejected instead of being followed.
"""

from __future__ import annotations

from typing import Any, Sequence

import flatbuffers
import numpy as np
from flatbuffers import encode, packer, util
from flatbuffers import number_types as N
from flatbuffers.table import Table as FlatTable

from ..exceptions import (
    BadIdentifierError,
    DecodeError,
    MissingRequiredFieldError,
    TruncatedBufferError,
)
from .buffer import (
    BOOL,
    SOFFSET,
    UOFFSET,
    VOFFSET,
    Buffer,
    Scalar,
    byte_view,
    check_scalar,
    require,
    wire_array,
)
from .schema import vtable_offset

IDENTIFIER_OFFSET = UOFFSET.size
IDENTIFIER_LENGTH = encode.FILE_IDENTIFIER_LENGTH
HEADER_SIZE = IDENTIFIER_OFFSET + IDENTIFIER_LENGTH

INITIAL_BUILDER_SIZE = 1024


def new_builder(initial_size: int = INITIAL_BUILDER_SIZE) -> flatbuffers.Builder:
    """Return an empty builder for one buffer."""
    return flatbuffers.Builder(initial_size)


def add_scalar(
    builder: flatbuffers.Builder,
    slot: int,
    scalar: Scalar,
    value: Any,
    *,
    default: Any = 0,
    field: str | None = None,
) -> None:
    """Add a scalar field to the open table; omitted when equal to ``default``.

    Raises:
        EncodeError: If the value does not fit ``scalar``
    """
    check_scalar(scalar, value, field)
    if scalar is not BOOL:
        value = int(value)
    getattr(builder, scalar.slot_method)(slot, value, default)


def create_vector(
    builder: flatbuffers.Builder, scalar: Scalar, values: Any, field: str | None = None
) -> int:
    """Write a vector of scalars and return its offset.

    Raises:
        EncodeError: If an element does not fit ``scalar``
    """
    return builder.CreateNumpyVector(wire_array(scalar, values, field))


def create_table_vector(builder: flatbuffers.Builder, tables: Sequence[int]) -> int:
    """Write a vector of already built tables and return its offset."""
    builder.StartVector(UOFFSET.size, len(tables), UOFFSET.size)
    for table in reversed(tables):
        builder.PrependUOffsetTRelative(table)
    return builder.EndVector()


def finish(builder: flatbuffers.Builder, root: int, identifier: bytes) -> bytes:
    """Finish the buffer with ``root`` as its root table and return its bytes."""
    if len(identifier) != IDENTIFIER_LENGTH:
        raise ValueError(f"File identifier must be {IDENTIFIER_LENGTH} bytes, got {identifier!r}")
    builder.Finish(root, file_identifier=identifier)
    return bytes(builder.Output())


class Table:
    """Bounds-checked read access to one table inside a buffer.

    Construction checks that the table's vtable and inline fields lie inside
    the buffer; every field access checks the bytes it touches before the
    flatbuffers runtime reads them.

    Attributes:
        name: Table name used in error messages
        position: Position of the table's soffset
        vtable_position: Position of the table's vtable
    """

    def __init__(self, data: Buffer, position: int, name: str) -> None:
        self.data = byte_view(data)
        self.name = name
        self.position = position

        require(self.data, position, SOFFSET.size, f"{name} table")
        self._tab = FlatTable(self.data, position)
        self.vtable_position = position - self._tab.Get(N.SOffsetTFlags, position)

        what = f"{name} vtable"
        require(self.data, self.vtable_position, 2 * VOFFSET.size, what)
        self._vtable_size = self._tab.Get(N.VOffsetTFlags, self.vtable_position)
        inline_size = self._tab.Get(N.VOffsetTFlags, self.vtable_position + VOFFSET.size)
        if self._vtable_size < 2 * VOFFSET.size or self._vtable_size % VOFFSET.size:
            raise DecodeError(f"{name}: malformed vtable size {self._vtable_size}")
        require(self.data, self.vtable_position, self._vtable_size, what)
        require(self.data, position, inline_size, f"{name} table")

    def _offset(self, slot: int) -> int:
        return self._tab.Offset(vtable_offset(slot))

    def field_position(self, slot: int) -> int | None:
        """Absolute position of a field, or None when the field is absent."""
        offset = self._offset(slot)
        if offset == 0:
            return None
        return self.position + offset

    def vtable_entry_position(self, slot: int) -> int:
        """Position of a slot's entry in the vtable (which may be past its end)."""
        return self.vtable_position + vtable_offset(slot)

    def scalar(self, slot: int, scalar: Scalar, field: str, default: Any = 0) -> Any:
        """Read a scalar field, falling back to the schema default when absent."""
        position = self.field_position(slot)
        if position is None:
            return default
        require(self.data, position, scalar.size, f"{self.name}.{field}")
        return self._tab.Get(scalar.flags, position)

    def struct_bytes(self, slot: int, size: int, field: str) -> bytes | None:
        """Read an inline struct's bytes, or None when absent."""
        position = self.field_position(slot)
        if position is None:
            return None
        require(self.data, position, size, f"{self.name}.{field}")
        return bytes(self.data[position : position + size])

    def _follow(self, slot: int, field: str, *, required: bool) -> int | None:
        what = f"{self.name}.{field}"
        position = self.field_position(slot)
        if position is None:
            if required:
                raise MissingRequiredFieldError(what)
            return None

        require(self.data, position, UOFFSET.size, what)
        offset = self._tab.Get(N.UOffsetTFlags, position)
        if offset == 0 and required:
            raise MissingRequiredFieldError(what)
        if offset < UOFFSET.size:
            raise DecodeError(f"{what}: offset {offset} does not point past the field")
        return self._tab.Indirect(position)

    def _vector_length(self, target: int, element_size: int, what: str) -> int:
        require(self.data, target, UOFFSET.size, what)
        length = self._tab.Get(N.UOffsetTFlags, target)
        require(self.data, target + UOFFSET.size, length * element_size, what)
        return length

    def table(self, slot: int, name: str, field: str, *, required: bool = False) -> Table | None:
        """Follow a sub-table reference.

        Returns:
            The sub-table, or None when absent and not required

        Raises:
            MissingRequiredFieldError: If required and absent or null
            DecodeError: If the reference cannot be valid
        """
        target = self._follow(slot, field, required=required)
        if target is None:
            return None
        return Table(self.data, target, name)

    def vector(self, slot: int, scalar: Scalar, field: str) -> np.ndarray:
        """Read-only zero-copy view of a scalar vector; empty when absent."""
        target = self._follow(slot, field, required=False)
        if target is None:
            length = 0
        else:
            length = self._vector_length(target, scalar.size, f"{self.name}.{field}")

        if length == 0:
            array = np.empty(0, dtype=scalar.dtype)
        else:
            array = self._tab.GetVectorAsNumpy(scalar.flags, self._offset(slot))
        array.flags.writeable = False
        return array

    def tables(self, slot: int, name: str, field: str) -> list[Table]:
        """Follow a vector of sub-tables; empty when absent."""
        target = self._follow(slot, field, required=False)
        if target is None:
            return []
        what = f"{self.name}.{field}"
        length = self._vector_length(target, UOFFSET.size, what)

        start = self._tab.Vector(self._offset(slot))
        tables = []
        for index in range(length):
            at = start + index * UOFFSET.size
            offset = self._tab.Get(N.UOffsetTFlags, at)
            if offset < UOFFSET.size:
                raise DecodeError(
                    f"{what}[{index}]: offset {offset} does not point past the element"
                )
            tables.append(Table(self.data, self._tab.Indirect(at), name))
        return tables


def peek_identifier(data: Buffer) -> bytes | None:
    """Return the file identifier of a buffer, or None if it is too short to have one."""
    view = byte_view(data)
    if len(view) < HEADER_SIZE:
        return None
    return bytes(util.GetBufferIdentifier(view, 0))


def buffer_has_identifier(data: Buffer, identifier: bytes) -> bool:
    """True if the buffer is long enough to carry an identifier and carries ``identifier``."""
    view = byte_view(data)
    return len(view) >= HEADER_SIZE and bool(util.BufferHasIdentifier(view, 0, identifier))


def read_root(data: Buffer, identifier: bytes, name: str) -> Table:
    """Check a buffer's identifier and return its root table.

    Raises:
        TruncatedBufferError: If the buffer cannot hold the header or root table
        BadIdentifierError: If the identifier is not ``identifier``
    """
    view = byte_view(data)
    if len(view) < HEADER_SIZE:
        raise TruncatedBufferError(
            f"Truncated data: {len(view)} bytes cannot hold a {HEADER_SIZE}-byte header"
        )

    if not buffer_has_identifier(view, identifier):
        raise BadIdentifierError(identifier, peek_identifier(view) or b"")

    return Table(view, encode.Get(packer.uoffset, view, 0), name)
