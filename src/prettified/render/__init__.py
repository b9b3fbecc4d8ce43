"""Render engine — accumulate, format, clip and scroll streamed markdown."""

from prettified.render.buffer import ContentBuffer
from prettified.render.engine import LoopState, RenderFrame, StreamRenderer
from prettified.render.formatter import (
    FormatError,
    Formatter,
    FormatterInitError,
    MarkdownFormatter,
    create_formatter,
)
from prettified.render.status import Spinner, StatusState, status_label
from prettified.render.viewport import Viewport

__all__ = [
    "ContentBuffer",
    "LoopState",
    "RenderFrame",
    "StreamRenderer",
    "FormatError",
    "Formatter",
    "FormatterInitError",
    "MarkdownFormatter",
    "create_formatter",
    "Spinner",
    "StatusState",
    "status_label",
    "Viewport",
]
