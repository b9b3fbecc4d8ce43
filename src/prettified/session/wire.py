"""Wire protocol — decouples input decoding from rendering.

Decoders push stream messages onto the wire from a background thread;
the render loop subscribes and consumes them one at a time. The same
wire feeds the Textual UI and the headless plain mode.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Any


class EventType(enum.Enum):
    CONTENT = "content"
    TOOL_NAME = "tool_name"
    EVENT_CODE = "event_code"
    RESIZE = "resize"
    QUIT = "quit"
    TICK = "tick"


@dataclass
class WireEvent:
    """An event on the wire."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


class Wire:
    """Unbounded message bus: decoder -> render loop subscribers.

    Single-producer, multi-consumer broadcast. Once a loop is attached,
    ``send()`` may be called from any thread; delivery always happens on
    the loop thread.
    """

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[WireEvent | None]] = []
        self._closed: bool = False
        self._loop: asyncio.AbstractEventLoop | None = None

    def attach_loop(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Attach the consumer's event loop so sends become thread-safe.

        Must be called from the asyncio thread (or pass an explicit loop).
        """
        self._loop = loop or asyncio.get_running_loop()

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: WireEvent) -> None:
        """Send an event to all subscribers.

        Silently drops events after ``close()`` or ``send_quit()``.
        """
        if self._closed:
            return
        self._deliver(event)

    def _deliver(self, event: WireEvent | None) -> None:
        if self._loop is not None:
            for q in list(self._subscribers):
                self._loop.call_soon_threadsafe(q.put_nowait, event)
        else:
            for q in self._subscribers:
                q.put_nowait(event)

    def send_content(self, text: str) -> None:
        self.send(WireEvent(type=EventType.CONTENT, data={"text": text}))

    def send_tool_name(self, name: str) -> None:
        self.send(WireEvent(type=EventType.TOOL_NAME, data={"name": name}))

    def send_event_code(self, code: str) -> None:
        self.send(WireEvent(type=EventType.EVENT_CODE, data={"code": code}))

    def send_resize(self, width: int, height: int) -> None:
        self.send(
            WireEvent(
                type=EventType.RESIZE,
                data={"width": width, "height": height},
            )
        )

    def send_quit(self) -> None:
        """Send the terminal QUIT event and close the wire.

        Only the first call delivers anything; the stream has at most one quit.
        """
        if self._closed:
            return
        self._deliver(WireEvent(type=EventType.QUIT))
        self._closed = True

    def subscribe(self) -> asyncio.Queue[WireEvent | None]:
        """Subscribe to events. Returns a queue to read from."""
        q: asyncio.Queue[WireEvent | None] = asyncio.Queue()
        self._subscribers.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        """Unsubscribe from events."""
        if q in self._subscribers:
            self._subscribers.remove(q)

    def close(self) -> None:
        """Signal all subscribers that the wire is closing."""
        self._closed = True
        self._deliver(None)
