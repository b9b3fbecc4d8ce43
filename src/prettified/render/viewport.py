"""Viewport — clipping and scroll-position bookkeeping for rendered output."""

from __future__ import annotations

from rich.ansi import AnsiDecoder
from rich.text import Text


class Viewport:
    """A vertical window onto the rendered lines.

    ``width`` and ``height`` are 0 until the terminal reports a size; a
    zero width means lines are not clipped and a zero height means the
    whole content is drawn without scrolling.

    Invariant: ``0 <= y_offset <= max_offset``.
    """

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self.width = width
        self.height = height
        self.y_offset = 0
        self.lines: list[Text] = []
        self._source = ""

    # --- Geometry ---

    @property
    def content_height(self) -> int:
        return len(self.lines)

    @property
    def max_offset(self) -> int:
        if self.height <= 0:
            return 0
        return max(0, self.content_height - self.height)

    @property
    def at_bottom(self) -> bool:
        """True when the window touches the last line (pinned to bottom)."""
        return self.y_offset >= self.max_offset

    @property
    def scrolling_needed(self) -> bool:
        return self.height > 0 and self.content_height > self.height

    # --- Content ---

    def set_content(self, rendered: str) -> None:
        """Replace the content. The offset is kept, only clamped."""
        self._source = rendered
        self.lines = self._clip(rendered)
        self._clamp()

    def resize(self, width: int, height: int) -> None:
        """Apply a new terminal size, keeping a bottom-pinned view pinned."""
        was_at_bottom = self.at_bottom
        self.width = max(0, width)
        self.height = max(0, height)
        self.lines = self._clip(self._source)
        if was_at_bottom:
            self.goto_bottom()
        else:
            self._clamp()

    def _clip(self, rendered: str) -> list[Text]:
        lines = list(AnsiDecoder().decode(rendered))
        if self.width > 0:
            for line in lines:
                line.truncate(self.width, overflow="crop")
        return lines

    def visible_lines(self) -> list[Text]:
        if not self.scrolling_needed:
            return list(self.lines)
        return self.lines[self.y_offset : self.y_offset + self.height]

    # --- Scrolling ---

    def _clamp(self) -> None:
        self.y_offset = min(max(0, self.y_offset), self.max_offset)

    def set_offset(self, offset: int) -> None:
        self.y_offset = offset
        self._clamp()

    def scroll_down(self, n: int = 1) -> None:
        self.set_offset(self.y_offset + n)

    def scroll_up(self, n: int = 1) -> None:
        self.set_offset(self.y_offset - n)

    def page_down(self) -> None:
        self.scroll_down(max(1, self.height))

    def page_up(self) -> None:
        self.scroll_up(max(1, self.height))

    def half_page_down(self) -> None:
        self.scroll_down(max(1, self.height // 2))

    def half_page_up(self) -> None:
        self.scroll_up(max(1, self.height // 2))

    def goto_top(self) -> None:
        self.y_offset = 0

    def goto_bottom(self) -> None:
        self.y_offset = self.max_offset
