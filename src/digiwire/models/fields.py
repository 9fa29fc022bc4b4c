"""Field type helpers and utilities.

This module provides the bounded integer types used by the message models.
Each alias constrains a Python int to the range of its wire width, so invalid
values are rejected when a message is constructed rather than when it is encoded.
"""

from __future__ import annotations

from typing import Annotated, Any, cast

from pydantic import Field
from pydantic.fields import FieldInfo


def BoundedInt(*, ge: int | None = None, le: int | None = None, **kwargs: Any) -> FieldInfo:
    """Create a bounded integer field.

    This is a convenience wrapper around Pydantic's Field() that sets both
    ge= and le= constraints.

    Args:
        ge: Minimum value (inclusive)
        le: Maximum value (inclusive)
        **kwargs: Additional Field() arguments (description, default, etc.)

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Example:
        >>> class Reading(WireModel):
        ...     hour: Annotated[int, BoundedInt(ge=0, le=23)]
    """
    return cast(FieldInfo, Field(ge=ge, le=le, **kwargs))


def UnsignedInt(bits: int, **kwargs: Any) -> FieldInfo:
    """Create a field bounded to the range of an unsigned integer of ``bits`` width."""
    if bits not in (8, 16, 32, 64):
        raise ValueError(f"bits must be 8, 16, 32 or 64, got {bits}")
    return BoundedInt(ge=0, le=(1 << bits) - 1, **kwargs)


UInt8 = Annotated[int, UnsignedInt(8)]
UInt16 = Annotated[int, UnsignedInt(16)]
UInt32 = Annotated[int, UnsignedInt(32)]
UInt64 = Annotated[int, UnsignedInt(64)]
