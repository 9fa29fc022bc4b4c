"""Routing of encoded buffers by their file identifier.

Consumers that receive buffers of several kinds on one stream peek at the
4-byte identifier and hand the buffer to the matching codec. The set of
kinds is closed: anything else is reported as UNKNOWN, never coerced into
one of the known shapes.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable

from .codec import analog_trace, event_list
from .codec.analog_trace import AnalogTraceView
from .codec.event_list import EventListView
from .codec.table import buffer_has_identifier, peek_identifier
from .exceptions import BadIdentifierError, EncodeError, TruncatedBufferError
from .models import (
    ANALOG_TRACE_IDENTIFIER,
    EVENT_LIST_IDENTIFIER,
    AnalogTraceMessage,
    EventListMessage,
)

LOG = logging.getLogger(__name__)

Buffer = bytes | bytearray | memoryview
Decoded = EventListView | EventListMessage | AnalogTraceView | AnalogTraceMessage


class MessageKind(enum.Enum):
    """Kinds of buffer a consumer can receive, keyed by file identifier."""

    EVENT_LIST = EVENT_LIST_IDENTIFIER
    ANALOG_TRACE = ANALOG_TRACE_IDENTIFIER
    UNKNOWN = None

    @property
    def identifier(self) -> bytes | None:
        """File identifier of the kind (None for UNKNOWN)."""
        return self.value


_DECODERS: dict[MessageKind, Callable[..., Decoded]] = {
    MessageKind.EVENT_LIST: event_list.decode,
    MessageKind.ANALOG_TRACE: analog_trace.decode,
}


def identify(data: Buffer) -> MessageKind:
    """Classify a buffer by its file identifier without parsing the rest.

    Buffers too short to carry an identifier are UNKNOWN.

    Example:
        >>> identify(event_list.encode(0, metadata, [], [], []))
        <MessageKind.EVENT_LIST: b'dev2'>
        >>> identify(b"not a message")
        <MessageKind.UNKNOWN: None>
    """
    tag = peek_identifier(data)
    try:
        return MessageKind(tag)
    except ValueError:
        return MessageKind.UNKNOWN


def has_identifier(data: Buffer, identifier: bytes | MessageKind) -> bool:
    """True if the buffer carries ``identifier``."""
    if isinstance(identifier, MessageKind):
        identifier = identifier.value
    if identifier is None:
        return False
    return buffer_has_identifier(data, identifier)


def decode(data: Buffer, *, copy: bool = False) -> Decoded:
    """Decode a buffer of either message kind.

    Args:
        data: Encoded buffer
        copy: If False, return a zero-copy view; if True, an owned message

    Returns:
        EventListView/EventListMessage or AnalogTraceView/AnalogTraceMessage

    Raises:
        BadIdentifierError: If the identifier is not a known kind
        TruncatedBufferError: If the buffer cannot hold an identifier
        DecodeError: For any error raised by the selected codec

    Example:
        >>> message = decode(received, copy=True)
        >>> if isinstance(message, AnalogTraceMessage):
        ...     print(f"{len(message.channels)} traces at {message.sample_rate} Hz")
    """
    kind = identify(data)
    decoder = _DECODERS.get(kind)
    if decoder is None:
        tag = peek_identifier(data)
        if tag is None:
            raise TruncatedBufferError(
                f"Truncated data: {memoryview(data).nbytes} bytes cannot hold a file identifier"
            )
        LOG.debug("Rejecting buffer with unknown identifier %r", tag)
        raise BadIdentifierError(None, tag)
    return decoder(data, copy=copy)


def encode(message: EventListMessage | AnalogTraceMessage, **options: Any) -> bytes:
    """Encode either message model.

    Args:
        message: EventListMessage or AnalogTraceMessage
        **options: Passed to the codec (``strict`` for trace messages)

    Raises:
        EncodeError: If the message type is not a known root message
    """
    if isinstance(message, EventListMessage):
        return event_list.encode_message(message, **options)
    if isinstance(message, AnalogTraceMessage):
        return analog_trace.encode_message(message, **options)
    raise EncodeError(f"{type(message).__name__} is not an encodable root message")
