"""Exception hierarchy for digiwire.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from DigiwireError for easy catching of any digiwire-specific error.

Callers that route heterogeneous buffers usually only need to tell two cases apart:

- BadIdentifierError: the buffer is not of the expected message kind (reroute or ignore)
- anything else: the buffer claims to be ours but is malformed (a data-integrity incident)
"""

from __future__ import annotations


class DigiwireError(Exception):
    """Base exception for all digiwire errors."""

    pass


class EncodeError(DigiwireError):
    """Raised when a value cannot be written to the wire.

    Examples:
        - Value out of range for its wire width (e.g. 256 for a u8 field)
        - Non-integer data passed for an integer sequence
    """

    pass


class DecodeError(DigiwireError):
    """Raised when binary data cannot be read.

    Examples:
        - Decoded timestamp fields out of range
        - Malformed vtable
    """

    pass


class BadIdentifierError(DecodeError):
    """Raised when a buffer's file identifier is not the one a decoder expects.

    Attributes:
        expected: Identifier the decoder was asked to read
        actual: Identifier found in the buffer
    """

    def __init__(self, expected: bytes | None, actual: bytes) -> None:
        self.expected = expected
        self.actual = actual
        if expected is None:
            message = f"Unknown file identifier {actual!r}"
        else:
            message = f"File identifier mismatch: expected {expected!r}, got {actual!r}"
        super().__init__(message)


class TruncatedBufferError(DecodeError):
    """Raised when a buffer is shorter than the shape it declares.

    Examples:
        - Buffer too short to hold the root offset and identifier
        - A table, vector or struct extends past the end of the buffer
    """

    pass


class InvalidMessageError(DigiwireError):
    """Raised when a message breaks one of the structural rules of its schema.

    These are raised by encoders before anything is written, by decoders when
    a buffer carries such a message, and by validate() results turned into errors.
    """

    pass


class MissingRequiredFieldError(InvalidMessageError):
    """Raised when a required sub-object (frame metadata, timestamp) is absent."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Required field {field} is missing")


class LengthMismatchError(InvalidMessageError):
    """Raised when the parallel event arrays do not have equal lengths."""

    def __init__(self, lengths: dict[str, int]) -> None:
        self.lengths = lengths
        described = ", ".join(f"{name}={length}" for name, length in lengths.items())
        super().__init__(f"Event arrays must have equal lengths, got {described}")


class ZeroSampleRateError(InvalidMessageError):
    """Raised when an analog trace message has a sample rate of zero."""

    pass


class DuplicateChannelError(InvalidMessageError):
    """Raised (in strict mode) when an analog trace message repeats a channel number."""

    def __init__(self, channels: list[int]) -> None:
        self.channels = channels
        super().__init__(f"Duplicate channel numbers in trace message: {channels}")
