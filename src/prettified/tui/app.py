"""Textual application for the prettified stream viewer."""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widgets import Static

from prettified.render.engine import RenderFrame, StreamRenderer
from prettified.session.wire import EventType, Wire, WireEvent

logger = logging.getLogger(__name__)

# Rows reserved below the content window
_STATUS_HEIGHT = 1
_WHEEL_LINES = 3


class Decoder(Protocol):
    def run(self) -> None: ...


class DeferredLogHandler(logging.Handler):
    """Logging handler that holds records while the TUI owns the terminal.

    Writing to stderr mid-session corrupts the Textual display, so
    records are kept and replayed once the app has exited.
    """

    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def replay(self) -> None:
        """Re-dispatch held records to the (restored) logging handlers."""
        records, self.records = self.records, []
        for record in records:
            logging.getLogger(record.name).handle(record)


class PrettifiedApp(App):
    """Live markdown view of a text stream with a status line."""

    TITLE = "prettified"
    CSS = """
    Screen:inline {
        height: auto;
    }

    #output {
        height: auto;
    }

    #status-bar {
        height: 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", priority=True),
        Binding("up,k", "scroll_lines(-1)", "Up", show=False),
        Binding("down,j", "scroll_lines(1)", "Down", show=False),
        Binding("pageup,b", "page(-1)", "Page up", show=False),
        Binding("pagedown,f,space", "page(1)", "Page down", show=False),
        Binding("u", "half_page(-1)", "Half page up", show=False),
        Binding("d", "half_page(1)", "Half page down", show=False),
        Binding("home,g", "goto_top", "Top", show=False),
        Binding("end,G", "goto_bottom", "Bottom", show=False),
    ]

    def __init__(
        self,
        renderer: StreamRenderer,
        wire: Wire,
        decoder: Decoder | None = None,
        log_handler: DeferredLogHandler | None = None,
    ) -> None:
        super().__init__()
        self.renderer = renderer
        self.wire = wire
        self._decoder = decoder
        self._log_handler = log_handler
        self._queue = wire.subscribe()
        self._spinner_timer: Timer | None = None
        self.reader: threading.Thread | None = None

    def compose(self) -> ComposeResult:
        yield Static(id="output")
        yield Static(id="status-bar")

    def on_mount(self) -> None:
        if self._log_handler is not None:
            self._install_log_handler(self._log_handler)

        self.wire.attach_loop()
        self._listen_wire()

        if self.renderer.spinner is not None:
            self._spinner_timer = self.set_interval(
                self.renderer.spinner.interval, self._tick_spinner
            )

        if self._decoder is not None:
            self.reader = threading.Thread(
                target=self._decoder.run, name="prettified-input", daemon=True
            )
            self.reader.start()

        self._draw(self.renderer.view())

    def _install_log_handler(self, handler: DeferredLogHandler) -> None:
        root = logging.getLogger()
        for h in root.handlers[:]:
            root.removeHandler(h)
        root.addHandler(handler)

    # --- Wire event loop ---

    @work(exclusive=True)
    async def _listen_wire(self) -> None:
        try:
            while True:
                event = await self._queue.get()
                if event is None:
                    break
                if not self.handle_wire_event(event):
                    break
        finally:
            self.wire.unsubscribe(self._queue)
            self._stop_spinner()
        self.exit()

    def handle_wire_event(self, event: WireEvent) -> bool:
        """Hand one message to the renderer and draw the resulting frame."""
        running = self.renderer.handle(event)
        if self.renderer.last_frame is not None:
            self._draw(self.renderer.last_frame)
        return running

    def _draw(self, frame: RenderFrame) -> None:
        try:
            self.query_one("#output", Static).update(frame.body)
            self.query_one("#status-bar", Static).update(frame.status)
        except NoMatches:
            # Widgets are gone once the app is shutting down
            logger.debug("Frame dropped: widgets not mounted")

    # --- Terminal events ---

    def on_resize(self, event: events.Resize) -> None:
        self.handle_wire_event(
            WireEvent(
                type=EventType.RESIZE,
                data={
                    "width": event.size.width,
                    "height": max(0, event.size.height - _STATUS_HEIGHT),
                },
            )
        )

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self.action_scroll_lines(-_WHEEL_LINES)

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self.action_scroll_lines(_WHEEL_LINES)

    # --- Spinner ---

    def _tick_spinner(self) -> None:
        self.handle_wire_event(WireEvent(type=EventType.TICK))

    def _stop_spinner(self) -> None:
        if self._spinner_timer is not None:
            self._spinner_timer.stop()
            self._spinner_timer = None

    # --- Scroll actions ---

    def _redraw(self) -> None:
        self._draw(self.renderer.view())

    def action_scroll_lines(self, n: int) -> None:
        self.renderer.viewport.scroll_down(n)
        self._redraw()

    def action_page(self, direction: int) -> None:
        if direction < 0:
            self.renderer.viewport.page_up()
        else:
            self.renderer.viewport.page_down()
        self._redraw()

    def action_half_page(self, direction: int) -> None:
        if direction < 0:
            self.renderer.viewport.half_page_up()
        else:
            self.renderer.viewport.half_page_down()
        self._redraw()

    def action_goto_top(self) -> None:
        self.renderer.viewport.goto_top()
        self._redraw()

    def action_goto_bottom(self) -> None:
        self.renderer.viewport.goto_bottom()
        self._redraw()
