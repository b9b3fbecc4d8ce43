"""Status line — event-code state machine and spinner."""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.style import Style
from rich.text import Text

RECEIVED_TEXT = "received-text"
REQUIRES_TOOL = "requires-tool"
CONSTRUCTING_TOOL = "constructing-tool"
BLOCK_FINISHED = "block-finished"

IDLE_LABEL = "Loading..."

# Pulsing star frames, one per tick
SPINNER_FRAMES = ["✶", "✸", "✹", "✺", "✹", "✷"]
SPINNER_INTERVAL = 0.035
SPINNER_COLOR = "color(205)"


def status_label(event: str, tool: str = "") -> str:
    """Map an event code (and current tool) to its status label.

    Unknown codes, including the empty string, map to "".
    """
    if event == RECEIVED_TEXT:
        return "Writing..."
    if event == REQUIRES_TOOL:
        return "Calling..."
    if event == CONSTRUCTING_TOOL:
        return f"Constructing info for tool {tool}..."
    if event == BLOCK_FINISHED:
        return "Processing..."
    return ""


@dataclass
class StatusState:
    """Current event code and tool name; the label is derived."""

    event: str = ""
    tool: str = ""

    @property
    def label(self) -> str:
        return status_label(self.event, self.tool)

    def display(self, idle_label: str = IDLE_LABEL) -> str:
        """Text shown on the status line."""
        label = self.label
        if not label:
            return idle_label
        if self.tool:
            return f"{label} [{self.tool}]"
        return label


@dataclass
class Spinner:
    frames: list[str] = field(default_factory=lambda: list(SPINNER_FRAMES))
    interval: float = SPINNER_INTERVAL
    color: str = SPINNER_COLOR
    index: int = 0

    @property
    def glyph(self) -> str:
        return self.frames[self.index % len(self.frames)]

    def advance(self) -> None:
        self.index = (self.index + 1) % len(self.frames)

    def render(self) -> Text:
        return Text(self.glyph, style=Style.parse(self.color))
