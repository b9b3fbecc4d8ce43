"""Tests for prettified.tui.app (PrettifiedApp, DeferredLogHandler)."""

from __future__ import annotations

import io
import logging

from textual import events

from prettified.input.decoders import RawDecoder
from prettified.render.engine import LoopState, StreamRenderer
from prettified.render.formatter import MarkdownFormatter
from prettified.render.status import Spinner
from prettified.session.wire import Wire
from prettified.tui.app import DeferredLogHandler, PrettifiedApp


def _renderer(spinner: Spinner | None = None) -> StreamRenderer:
    return StreamRenderer(MarkdownFormatter(color_system=None), spinner=spinner)


def _rows(n: int) -> str:
    return "".join(f"row {i}\n\n" for i in range(n))


def _wheel(event_class: type[events.MouseEvent]) -> events.MouseEvent:
    return event_class(None, 1, 1, 0, 0, 0, False, False, False)


class TestPrettifiedApp:
    async def test_resize_reaches_viewport(self) -> None:
        renderer = _renderer()
        app = PrettifiedApp(renderer=renderer, wire=Wire())
        async with app.run_test(size=(60, 20)) as pilot:
            await pilot.pause()
            assert renderer.viewport.width == 60
            assert renderer.viewport.height == 19
            assert renderer.state is LoopState.RUNNING

    async def test_content_from_wire_is_rendered(self) -> None:
        renderer = _renderer()
        wire = Wire()
        app = PrettifiedApp(renderer=renderer, wire=wire)
        async with app.run_test(size=(60, 20)) as pilot:
            await pilot.pause()
            wire.send_content("Hello ")
            wire.send_content("**world**")
            await pilot.pause()
            assert renderer.buffer.read_all() == "Hello **world**"
            assert "Hello world" in renderer.rendered
            assert renderer.last_frame is not None
            assert "Hello world" in renderer.last_frame.body.plain

    async def test_status_events(self) -> None:
        renderer = _renderer()
        wire = Wire()
        app = PrettifiedApp(renderer=renderer, wire=wire)
        async with app.run_test(size=(60, 20)) as pilot:
            wire.send_tool_name("calc")
            wire.send_event_code("constructing-tool")
            await pilot.pause()
            assert renderer.status_line().plain == (
                "Constructing info for tool calc... [calc]"
            )

    async def test_keyboard_scrolling(self) -> None:
        renderer = _renderer()
        wire = Wire()
        app = PrettifiedApp(renderer=renderer, wire=wire)
        async with app.run_test(size=(60, 11)) as pilot:
            await pilot.pause()
            wire.send_content(_rows(20))
            await pilot.pause()
            vp = renderer.viewport
            assert vp.scrolling_needed
            assert vp.at_bottom
            bottom = vp.y_offset

            await pilot.press("up")
            assert vp.y_offset == bottom - 1
            await pilot.press("home")
            assert vp.y_offset == 0

            # Not pinned: new content leaves the offset alone
            wire.send_content("tail\n")
            await pilot.pause()
            assert vp.y_offset == 0

            await pilot.press("end")
            assert vp.at_bottom

    async def test_mouse_wheel_scrolling(self) -> None:
        renderer = _renderer()
        wire = Wire()
        app = PrettifiedApp(renderer=renderer, wire=wire)
        async with app.run_test(size=(60, 11)) as pilot:
            await pilot.pause()
            wire.send_content(_rows(20))
            await pilot.pause()
            vp = renderer.viewport
            bottom = vp.y_offset
            assert bottom >= 6

            app.post_message(_wheel(events.MouseScrollUp))
            await pilot.pause()
            assert vp.y_offset == bottom - 3

            app.post_message(_wheel(events.MouseScrollDown))
            await pilot.pause()
            assert vp.y_offset == bottom

    async def test_quit_message_exits(self) -> None:
        renderer = _renderer()
        wire = Wire()
        app = PrettifiedApp(renderer=renderer, wire=wire)
        async with app.run_test(size=(60, 20)) as pilot:
            wire.send_content("done")
            wire.send_quit()
            await pilot.pause()
        assert renderer.state is LoopState.TERMINATING
        assert renderer.buffer.read_all() == "done"
        assert app.return_code == 0

    async def test_decoder_thread_feeds_app(self) -> None:
        renderer = _renderer()
        wire = Wire()
        decoder = RawDecoder(io.BytesIO(b"# Title\n\nbody text"), wire)
        app = PrettifiedApp(renderer=renderer, wire=wire, decoder=decoder)
        async with app.run_test(size=(60, 20)) as pilot:
            assert app.reader is not None
            app.reader.join(timeout=5)
            await pilot.pause()
        assert renderer.state is LoopState.TERMINATING
        assert renderer.buffer.read_all() == "# Title\n\nbody text"
        assert "body text" in renderer.rendered

    async def test_spinner_ticks(self) -> None:
        renderer = _renderer(spinner=Spinner(interval=0.01))
        app = PrettifiedApp(renderer=renderer, wire=Wire())
        async with app.run_test(size=(60, 20)) as pilot:
            await pilot.pause()
            before = renderer.frames
            await pilot.pause(0.1)
            assert renderer.frames > before


class TestDeferredLogHandler:
    def test_holds_then_replays(self) -> None:
        handler = DeferredLogHandler()
        target = logging.getLogger("prettified.test.deferred")
        target.propagate = False
        target.setLevel(logging.DEBUG)

        record = logging.LogRecord(
            "prettified.test.deferred", logging.ERROR, __file__, 1, "boom", None, None
        )
        handler.emit(record)
        assert handler.records == [record]

        received: list[logging.LogRecord] = []

        class _Collect(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                received.append(record)

        collector = _Collect()
        target.addHandler(collector)
        try:
            handler.replay()
        finally:
            target.removeHandler(collector)
            target.propagate = True

        assert received == [record]
        assert handler.records == []
