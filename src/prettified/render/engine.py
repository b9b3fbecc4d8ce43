"""Render loop — message dispatch, re-rendering and frame production.

``StreamRenderer`` owns every piece of mutable display state and
processes one wire message at a time to completion. Appending a chunk
and re-rendering the whole buffer happen in the same step, so the
buffer and the rendered output can never be observed half-updated.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable

from rich.style import Style
from rich.text import Text

from prettified.render.buffer import ContentBuffer
from prettified.render.formatter import FormatError, Formatter
from prettified.render.status import IDLE_LABEL, Spinner, StatusState
from prettified.render.viewport import Viewport
from prettified.session.wire import EventType, WireEvent

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 80
TAB_WIDTH = 4


class LoopState(enum.Enum):
    INITIALIZING = "initializing"  # No size reported yet
    RUNNING = "running"
    TERMINATING = "terminating"


@dataclass
class RenderFrame:
    """One drawn frame: the content window and the status line."""

    body: Text
    status: Text

    @property
    def plain(self) -> str:
        return f"{self.body.plain}\n{self.status.plain}"


class StreamRenderer:
    """The incremental render-and-scroll engine.

    Capability flags replace separate program variants: pass ``spinner``
    to animate the status line, or ``None`` for a static one.
    """

    def __init__(
        self,
        formatter: Formatter,
        spinner: Spinner | None = None,
        default_width: int = DEFAULT_WIDTH,
        tab_width: int = TAB_WIDTH,
        idle_label: str = IDLE_LABEL,
        on_render_error: Callable[[FormatError], None] | None = None,
    ) -> None:
        self.formatter = formatter
        self.spinner = spinner
        self.default_width = default_width
        self.tab_width = tab_width
        self.idle_label = idle_label
        self.on_render_error = on_render_error

        self.buffer = ContentBuffer()
        self.rendered = ""
        self.viewport = Viewport()
        self.status = StatusState()
        self.state = LoopState.INITIALIZING

        self.render_failures = 0
        self.frames = 0
        self.last_frame: RenderFrame | None = None

    @property
    def running(self) -> bool:
        return self.state is not LoopState.TERMINATING

    # --- Dispatch ---

    def handle(self, event: WireEvent) -> bool:
        """Process one message and draw one frame.

        Returns False once the loop is terminating; messages arriving
        after that are ignored.
        """
        if not self.running:
            return False

        handlers = {
            EventType.RESIZE: self._on_resize,
            EventType.CONTENT: self._on_content,
            EventType.TOOL_NAME: self._on_tool_name,
            EventType.EVENT_CODE: self._on_event_code,
            EventType.QUIT: self._on_quit,
        }
        handler = handlers.get(event.type, self._on_tick)
        handler(event.data)

        self.last_frame = self.view()
        self.frames += 1
        return self.running

    def _on_resize(self, data: dict) -> None:
        self.viewport.resize(data.get("width", 0), data.get("height", 0))
        if self.state is LoopState.INITIALIZING:
            self.state = LoopState.RUNNING

    def _on_content(self, data: dict) -> None:
        self.buffer.append(data.get("text", ""))
        self.render()

    def _on_tool_name(self, data: dict) -> None:
        self.status.tool = data.get("name", "")

    def _on_event_code(self, data: dict) -> None:
        self.status.event = data.get("code", "")

    def _on_quit(self, data: dict) -> None:
        logger.debug("Quit received after %d chunks", self.buffer.chunk_count)
        self.state = LoopState.TERMINATING

    def _on_tick(self, data: dict) -> None:
        if self.spinner is not None:
            self.spinner.advance()

    # --- Rendering ---

    def render(self) -> bool:
        """Re-render the full buffer and adjust scrolling.

        On a formatting failure the previous output is kept and the
        failure is only counted; the next chunk retries from the full
        buffer. Returns True when the output was replaced.
        """
        viewport = self.viewport
        was_at_bottom = viewport.at_bottom
        old_height = viewport.content_height

        width = viewport.width if viewport.width > 0 else self.default_width
        try:
            formatted = self.formatter.format(self.buffer.read_all(), width)
        except FormatError as e:
            self.render_failures += 1
            logger.debug("Render skipped (%d so far): %s", self.render_failures, e)
            if self.on_render_error is not None:
                self.on_render_error(e)
            return False

        formatted = formatted.rstrip().replace("\t", " " * self.tab_width)
        self.rendered = formatted + "\n"
        viewport.set_content(self.rendered)

        if old_height < viewport.content_height and was_at_bottom:
            viewport.goto_bottom()
        return True

    # --- Drawing ---

    def status_line(self) -> Text:
        label = Text(self.status.display(self.idle_label), style=Style(italic=True))
        if self.spinner is None:
            return label
        return Text.assemble(self.spinner.render(), " ", label)

    def view(self) -> RenderFrame:
        body = Text("\n").join(self.viewport.visible_lines())
        return RenderFrame(body=body, status=self.status_line())
