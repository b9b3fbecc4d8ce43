"""Markdown formatter — accumulated text to ANSI-styled, word-wrapped text.

The render loop treats the formatter as a pure, failable function
``format(text, width) -> str``. The default implementation renders with
rich's Markdown element into a captured console.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound
from rich.console import Console
from rich.markdown import Markdown

logger = logging.getLogger(__name__)

ColorSystem = Literal["auto", "standard", "256", "truecolor", "windows"]


class FormatError(Exception):
    """A single render of the buffer failed; the previous output stays valid."""


class FormatterInitError(Exception):
    """The formatting engine could not be set up."""


class Formatter(Protocol):
    def format(self, text: str, width: int) -> str: ...


class MarkdownFormatter:
    """Render markdown with rich at a fixed wrap width."""

    def __init__(
        self,
        code_theme: str = "monokai",
        color_system: ColorSystem | None = "truecolor",
        hyperlinks: bool = True,
    ) -> None:
        try:
            get_style_by_name(code_theme)
        except ClassNotFound as e:
            raise FormatterInitError(f"unknown code theme: {code_theme}") from e
        self.code_theme = code_theme
        self.color_system = color_system
        self.hyperlinks = hyperlinks

    def format(self, text: str, width: int) -> str:
        # "auto" leaves terminal detection to rich (plain output to a pipe)
        force_terminal: bool | None = self.color_system is not None
        if self.color_system == "auto":
            force_terminal = None
        console = Console(
            width=width,
            force_terminal=force_terminal,
            color_system=self.color_system,
            legacy_windows=False,
            highlight=False,
        )
        try:
            with console.capture() as capture:
                console.print(
                    Markdown(
                        text,
                        code_theme=self.code_theme,
                        hyperlinks=self.hyperlinks,
                    )
                )
        except Exception as e:
            raise FormatError(str(e)) from e
        return capture.get()


def create_formatter(
    code_theme: str = "monokai",
    color_system: ColorSystem | None = "truecolor",
    hyperlinks: bool = True,
) -> MarkdownFormatter:
    """Build the default formatter. Raises FormatterInitError on bad settings."""
    formatter = MarkdownFormatter(
        code_theme=code_theme,
        color_system=color_system,
        hyperlinks=hyperlinks,
    )
    logger.debug(
        "Formatter ready (code_theme=%s, color_system=%s)", code_theme, color_system
    )
    return formatter
