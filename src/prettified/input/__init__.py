"""Input decoders for raw byte chunks and structured JSON events."""

from prettified.input.decoders import (
    DEFAULT_CHUNK_SIZE,
    EventDecoder,
    RawDecoder,
    StreamEvent,
    create_decoder,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "EventDecoder",
    "RawDecoder",
    "StreamEvent",
    "create_decoder",
]
