"""Base model class and digiwire-specific Pydantic configuration.

Every message and sub-object in digiwire is an immutable value: it is built
once by a producer, serialized once and then only read.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class WireModel(BaseModel):
    """Base class for all digiwire value types.

    Instances are frozen and hashable. Sequence fields are declared as tuples
    so that a message cannot be mutated after construction.

    digiwire-specific options are configured as ClassVar attributes:

    Attributes:
        wire_identifier: 4-byte file identifier written at the head of the
            encoded buffer (only set on root message types)
        wire_table: Table name of the type in the wire schema
    """

    model_config = ConfigDict(
        frozen=True,
        # Forbid extra fields not defined in schema
        extra="forbid",
        strict=False,
    )

    wire_identifier: ClassVar[bytes | None] = None
    wire_table: ClassVar[str | None] = None
