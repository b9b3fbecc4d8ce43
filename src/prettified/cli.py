"""CLI entry point for prettified."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from typing import TYPE_CHECKING, BinaryIO

import typer

from prettified.config import PrettifiedConfig

if TYPE_CHECKING:
    from prettified.render.engine import StreamRenderer

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="prettified",
    help="Render a live markdown stream as formatted, scrollable terminal output.",
    add_completion=False,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        force=True,
    )


def _open_source(source: str | None, interactive: bool) -> BinaryIO:
    """Open the content stream.

    For a piped stdin in interactive mode the pipe is moved to a private
    descriptor and fd 0 is pointed at the controlling terminal, so the UI
    can still read the keyboard.
    """
    if source and source != "-":
        return open(source, "rb")

    if not interactive or sys.stdin.isatty():
        return sys.stdin.buffer

    pipe_fd = os.dup(sys.stdin.fileno())
    try:
        tty_fd = os.open("/dev/tty", os.O_RDONLY)
    except OSError as e:
        logger.debug("No controlling terminal for keyboard input: %s", e)
    else:
        os.dup2(tty_fd, sys.stdin.fileno())
        os.close(tty_fd)
    return os.fdopen(pipe_fd, "rb")


def _close_source(stream: BinaryIO, reader: threading.Thread | None) -> None:
    """Close a stream we opened, unless its reader is still blocked on it."""
    if stream is sys.stdin.buffer:
        return
    if reader is not None and reader.is_alive():
        # Closing under a blocked read would stall until the read returns
        logger.debug("Input reader still running; leaving source open")
        return
    stream.close()


def _build_renderer(config: PrettifiedConfig) -> StreamRenderer:
    """Set up the formatter and engine. Raises FormatterInitError."""
    from prettified.render.engine import StreamRenderer
    from prettified.render.formatter import create_formatter
    from prettified.render.status import Spinner

    formatter = create_formatter(
        code_theme=config.render.code_theme,
        color_system=config.render.color_system,
        hyperlinks=config.render.hyperlinks,
    )

    spinner: Spinner | None = None
    if config.spinner.enabled:
        spinner = Spinner(
            frames=list(config.spinner.frames),
            interval=config.spinner.interval,
            color=config.spinner.color,
        )

    return StreamRenderer(
        formatter,
        spinner=spinner,
        default_width=config.render.default_width,
        tab_width=config.render.tab_width,
        idle_label=config.ui.idle_label,
    )


@app.command()
def render(
    source: str | None = typer.Argument(
        None, help="File to read. Omit or pass '-' to read standard input."
    ),
    events: bool = typer.Option(
        False,
        "--events",
        "-e",
        help="Decode input as concatenated JSON objects {Text, Tool, Event}.",
    ),
    no_spinner: bool = typer.Option(
        False, "--no-spinner", help="Show a static status line."
    ),
    width: int | None = typer.Option(
        None, "--width", "-w", min=1, help="Wrap width until the terminal reports a size."
    ),
    code_theme: str | None = typer.Option(
        None, "--code-theme", help="Pygments style for fenced code blocks."
    ),
    fullscreen: bool = typer.Option(
        False, "--fullscreen", help="Use the alternate screen instead of inline output."
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="No interactive UI: print the final rendering once the stream ends.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Stream text from SOURCE and render it as markdown."""
    from prettified.render.formatter import FormatterInitError

    setup_logging(verbose)

    config = PrettifiedConfig.load(config_file)
    if events:
        config.input.mode = "events"
    if no_spinner:
        config.spinner.enabled = False
    if width:
        config.render.default_width = width
    if code_theme:
        config.render.code_theme = code_theme
    if fullscreen:
        config.ui.inline = False
    if plain and "color_system" not in config.render.model_fields_set:
        config.render.color_system = "auto"

    try:
        renderer = _build_renderer(config)
    except FormatterInitError as e:
        typer.echo(f"Error: failed to create renderer: {e}", err=True)
        raise typer.Exit(1)

    try:
        stream = _open_source(source, interactive=not plain)
    except OSError as e:
        typer.echo(f"Error: cannot open {source}: {e}", err=True)
        raise typer.Exit(1)

    if plain:
        asyncio.run(_run_plain(renderer, stream, config))
        typer.echo(renderer.rendered, nl=False)
        return

    return_code = _run_tui(renderer, stream, config, verbose)
    if return_code:
        typer.echo(f"Error: UI exited with code {return_code}", err=True)
        raise typer.Exit(return_code)


async def _run_plain(
    renderer: StreamRenderer, stream: BinaryIO, config: PrettifiedConfig
) -> None:
    """Drive the engine from the wire without a terminal UI."""
    from prettified.input.decoders import create_decoder
    from prettified.session.wire import Wire

    wire = Wire()
    wire.attach_loop()
    queue = wire.subscribe()
    decoder = create_decoder(
        config.input.mode, stream, wire, chunk_size=config.input.chunk_size
    )
    reader = threading.Thread(target=decoder.run, name="prettified-input", daemon=True)
    reader.start()

    try:
        while True:
            event = await queue.get()
            if event is None or not renderer.handle(event):
                break
    finally:
        wire.unsubscribe(queue)
        reader.join(timeout=1.0)
        _close_source(stream, reader)


def _run_tui(
    renderer: StreamRenderer,
    stream: BinaryIO,
    config: PrettifiedConfig,
    verbose: bool,
) -> int:
    """Run the Textual app; returns its exit code."""
    from prettified.input.decoders import create_decoder
    from prettified.session.wire import Wire
    from prettified.tui.app import DeferredLogHandler, PrettifiedApp

    wire = Wire()
    decoder = create_decoder(
        config.input.mode, stream, wire, chunk_size=config.input.chunk_size
    )
    log_handler = DeferredLogHandler()
    tui_app = PrettifiedApp(
        renderer=renderer,
        wire=wire,
        decoder=decoder,
        log_handler=log_handler,
    )

    try:
        if config.ui.inline:
            tui_app.run(inline=True, inline_no_clear=True)
        else:
            tui_app.run()
    finally:
        # Restore stderr logging and flush what the UI held back
        setup_logging(verbose)
        log_handler.replay()
        _close_source(stream, tui_app.reader)

    return tui_app.return_code or 0


def main() -> None:
    app()


if __name__ == "__main__":
    main()
