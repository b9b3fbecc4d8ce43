"""Input decoders — turn an external byte stream into wire messages.

Both decoders block on reads and are meant to run on a background
thread. They only ever talk to the render loop through the wire, and
each sends exactly one QUIT before returning.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import BinaryIO, Callable, Literal

from pydantic import BaseModel, ValidationError

from prettified.session.wire import Wire

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024

_JSON_WHITESPACE = " \t\n\r"


class StreamEvent(BaseModel):
    """One structured event: text plus tool/phase metadata.

    All three keys must be present; any of them may be empty.
    """

    Text: str
    Tool: str
    Event: str


def _reader(source: BinaryIO, chunk_size: int) -> Callable[[], bytes]:
    # read1 returns as soon as any bytes are available on buffered streams
    read1 = getattr(source, "read1", None)
    if read1 is not None:
        return lambda: read1(chunk_size)
    return lambda: source.read(chunk_size)


class RawDecoder:
    """Pass-through decoder: every non-empty read becomes one content chunk."""

    def __init__(
        self,
        source: BinaryIO,
        wire: Wire,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.source = source
        self.wire = wire
        self.chunk_size = chunk_size
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def run(self) -> None:
        try:
            self._read_all()
        finally:
            # Whatever ended the stream, the render loop gets its QUIT
            self.wire.send_quit()

    def _read_all(self) -> None:
        read = _reader(self.source, self.chunk_size)
        while True:
            try:
                data = read()
            except (OSError, ValueError) as e:
                logger.error("Error reading input: %s", e)
                return

            if not data:
                tail = self._decoder.decode(b"", final=True)
                if tail:
                    self.wire.send_content(tail)
                logger.debug("Input stream reached EOF")
                return

            self.wire.send_content(self._decoder.decode(data))


class EventDecoder:
    """Decoder for a sequence of concatenated JSON objects.

    Objects need not be newline-delimited. Each decoded object yields, in
    order, a tool name, an event code and a content chunk. A decode error
    ends the stream: no resynchronisation is attempted.
    """

    def __init__(
        self,
        source: BinaryIO,
        wire: Wire,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.source = source
        self.wire = wire
        self.chunk_size = chunk_size
        self._json = json.JSONDecoder()
        self._text = codecs.getincrementaldecoder("utf-8")()
        self._pending = ""

    def run(self) -> None:
        try:
            self._read_all()
        finally:
            self.wire.send_quit()

    def _read_all(self) -> None:
        read = _reader(self.source, self.chunk_size)
        while True:
            try:
                data = read()
            except (OSError, ValueError) as e:
                logger.error("Error reading input: %s", e)
                return

            eof = not data
            try:
                self._pending += self._text.decode(data, final=eof)
                self._drain(eof)
            except (ValueError, RecursionError, ValidationError) as e:
                # ValueError covers JSONDecodeError, UnicodeDecodeError and
                # integer literals past the interpreter's digit limit
                logger.error("Error decoding event: %s", e)
                return

            if eof:
                logger.debug("Event stream reached EOF")
                return

    def _drain(self, eof: bool) -> None:
        """Emit every complete object currently buffered."""
        while True:
            pending = self._pending.lstrip(_JSON_WHITESPACE)
            self._pending = pending
            if not pending:
                return
            try:
                obj, end = self._json.raw_decode(pending)
            except json.JSONDecodeError as e:
                if not eof and _is_incomplete(e, pending):
                    return
                raise
            self._pending = pending[end:]
            self._emit(StreamEvent.model_validate(obj))

    def _emit(self, event: StreamEvent) -> None:
        self.wire.send_tool_name(event.Tool)
        self.wire.send_event_code(event.Event)
        self.wire.send_content(event.Text)


def _is_incomplete(error: json.JSONDecodeError, doc: str) -> bool:
    """True when ``error`` only means the object has not fully arrived yet."""
    if error.msg.startswith("Unterminated string"):
        return True
    if error.msg.startswith("Invalid \\u") or error.msg.startswith("Invalid \\escape"):
        # An escape sequence cut at the chunk boundary
        return len(doc) - error.pos <= 6
    return error.pos >= len(doc.rstrip(_JSON_WHITESPACE))


def create_decoder(
    mode: Literal["raw", "events"],
    source: BinaryIO,
    wire: Wire,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> RawDecoder | EventDecoder:
    """Build the decoder for the configured input mode."""
    if mode == "events":
        return EventDecoder(source, wire, chunk_size=chunk_size)
    return RawDecoder(source, wire, chunk_size=chunk_size)
