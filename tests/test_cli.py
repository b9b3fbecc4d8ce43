"""Tests for prettified.cli (plain mode, exit codes)."""

from __future__ import annotations

import asyncio
import io
import json
import logging
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from prettified.cli import _build_renderer, _close_source, _run_plain, app
from prettified.config import PrettifiedConfig

runner = CliRunner()

_ENV = {
    "PRETTIFIED_COLOR_SYSTEM": "none",
    "PRETTIFIED_MODE": None,
    "PRETTIFIED_WIDTH": None,
    "PRETTIFIED_CODE_THEME": None,
    "PRETTIFIED_SPINNER": None,
}


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestPlainMode:
    def test_raw_stdin(self) -> None:
        result = runner.invoke(app, ["--plain"], input="Hello **world**", env=_ENV)
        assert result.exit_code == 0, result.output
        assert "Hello world" in result.output
        assert "**" not in result.output

    def test_events_stdin(self) -> None:
        data = json.dumps({"Text": "A", "Tool": "", "Event": "received-text"})
        data += json.dumps({"Text": "B", "Tool": "calc", "Event": "constructing-tool"})
        result = runner.invoke(app, ["--plain", "--events"], input=data, env=_ENV)
        assert result.exit_code == 0, result.output
        assert "AB" in result.output

    def test_malformed_events_still_exit_zero(self) -> None:
        data = json.dumps({"Text": "kept", "Tool": "", "Event": ""}) + "{nope"
        result = runner.invoke(app, ["--plain", "-e"], input=data, env=_ENV)
        assert result.exit_code == 0
        assert "kept" in result.output

    def test_file_source(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.md"
        path.write_text("# Heading\n\n- item one\n- item two\n")
        result = runner.invoke(app, ["--plain", str(path)], env=_ENV)
        assert result.exit_code == 0, result.output
        assert "Heading" in result.output
        assert "item two" in result.output

    def test_width_option(self) -> None:
        text = " ".join(["word"] * 30)
        result = runner.invoke(app, ["--plain", "-w", "20"], input=text, env=_ENV)
        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if line.strip()]
        assert len(lines) > 1
        assert all(len(line.rstrip()) <= 20 for line in lines)


class TestExitCodes:
    def test_unknown_code_theme_is_startup_failure(self) -> None:
        result = runner.invoke(
            app, ["--plain", "--code-theme", "no-such-theme"], input="x", env=_ENV
        )
        assert result.exit_code == 1
        assert "failed to create renderer" in result.output

    def test_missing_source_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--plain", str(tmp_path / "missing.md")], env=_ENV)
        assert result.exit_code == 1
        assert "cannot open" in result.output


class TestPlainColor:
    def test_pipe_output_has_no_ansi_by_default(self) -> None:
        env = {
            **_ENV,
            "PRETTIFIED_COLOR_SYSTEM": None,
            "FORCE_COLOR": None,
            "TTY_COMPATIBLE": None,
        }
        result = runner.invoke(app, ["--plain"], input="Hello **world**", env=env)
        assert result.exit_code == 0, result.output
        assert "Hello world" in result.output
        assert "\x1b[" not in result.output

    def test_explicit_color_system_is_kept(self) -> None:
        env = {**_ENV, "PRETTIFIED_COLOR_SYSTEM": "truecolor"}
        result = runner.invoke(app, ["--plain"], input="Hello **world**", env=env)
        assert result.exit_code == 0, result.output
        assert "\x1b[" in result.output


class TestCloseSource:
    def test_plain_run_closes_opened_file(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.md"
        path.write_text("some *text*")
        renderer = _build_renderer(_plain_config())
        stream = open(path, "rb")
        asyncio.run(_run_plain(renderer, stream, _plain_config()))
        assert stream.closed
        assert "some text" in renderer.rendered

    def test_stdin_is_left_open(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stdin = io.TextIOWrapper(io.BytesIO(b""))
        monkeypatch.setattr("sys.stdin", stdin)
        _close_source(stdin.buffer, None)
        assert not stdin.buffer.closed

    def test_busy_reader_keeps_source_open(self) -> None:
        stream = io.BytesIO(b"")
        release = threading.Event()
        reader = threading.Thread(target=release.wait, daemon=True)
        reader.start()
        try:
            _close_source(stream, reader)
            assert not stream.closed
        finally:
            release.set()
            reader.join()
        _close_source(stream, reader)
        assert stream.closed


def _plain_config() -> PrettifiedConfig:
    config = PrettifiedConfig()
    config.render.color_system = None
    config.spinner.enabled = False
    return config
