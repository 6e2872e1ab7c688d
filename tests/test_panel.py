from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

import pytest
from textual import events
from textual.widget import Widget

from lazyjj_panel.config import Config
from lazyjj_panel.host.app import EditorApp
from lazyjj_panel.host.panel import FILETYPE, FloatingPanel, centered_geometry, encode_key


@pytest.mark.parametrize(
    ("columns", "lines", "col_range", "row_range", "expected"),
    [
        (100, 40, 0.9, 0.8, (5, 4, 90, 32)),
        (80, 24, 0.9, 0.8, (4, 2, 72, 20)),
        (81, 25, 0.5, 0.5, (20, 6, 41, 13)),
        (100, 40, 1.0, 1.0, (0, 0, 100, 40)),
        (3, 2, 0.01, 0.01, (1, 0, 1, 1)),
    ],
)
def test_centered_geometry(
    columns: int, lines: int, col_range: float, row_range: float, expected: tuple[int, int, int, int]
) -> None:
    geometry = centered_geometry(columns, lines, col_range, row_range)

    assert (geometry.col, geometry.row, geometry.width, geometry.height) == expected


@pytest.mark.parametrize(
    ("key", "character", "expected"),
    [
        ("j", "j", "j"),
        ("enter", "\r", "\r"),
        ("up", None, "\x1b[A"),
        ("escape", "\x1b", "\x1b"),
        ("ctrl+c", None, "\x03"),
        ("ctrl+space", None, "\x00"),
        ("f12", None, None),
    ],
)
def test_encode_key(key: str, character: str | None, expected: str | None) -> None:
    assert encode_key(key, character) == expected


needs_sh = pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")


@pytest.fixture
def document(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    (repo / ".jj").mkdir(parents=True)
    path = repo / "notes.txt"
    path.write_text("hello\n")
    return path


@needs_sh
async def test_panel_is_centered_terminal_window(document: Path) -> None:
    app = EditorApp([str(document)], Config(command="sh -c 'sleep 5'", mapping=None))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()
        document_window = app.current_window()

        app.controller.open()
        await pilot.pause()
        await pilot.pause()

        panel = app.query_one(FloatingPanel)
        region = panel.region
        assert (region.x, region.y, region.width, region.height) == (5, 4, 90, 32)
        assert panel.styles.opacity == 1.0
        buffer = panel.buffer
        assert buffer.options == {"filetype": FILETYPE, "bufhidden": "hide"}
        assert buffer.job.cwd == str(document.parent)
        assert app.in_insert_mode
        assert app.current_window() == panel.window_id
        assert app.current_window() != document_window


@needs_sh
async def test_leaving_panel_hides_it_and_keeps_buffer(document: Path) -> None:
    app = EditorApp([str(document)], Config(command="sh -c 'sleep 5'", mapping=None))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()
        document_window = app.current_window()
        job = app.controller.open()
        await pilot.pause()
        await pilot.pause()
        panel_window = app.query_one(FloatingPanel).window_id

        app.set_current_window(document_window)
        await pilot.pause()
        await pilot.pause()

        assert not app.query(FloatingPanel)
        assert not app.window_is_valid(panel_window)
        assert not app.in_insert_mode
        assert job.is_running
        assert [buffer.job for buffer in app.list_buffers()] == [job]


@needs_sh
async def test_exit_returns_focus_to_previous_window(document: Path) -> None:
    app = EditorApp([str(document)], Config(command="sh -c 'sleep 1'", mapping=None))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()
        document_window = app.current_window()
        job = app.controller.open()
        await pilot.pause()
        await pilot.pause()
        assert app.current_window() != document_window

        assert await asyncio.to_thread(job.wait, 10)
        await pilot.pause()
        await pilot.pause()

        assert app.current_window() == document_window
        assert not app.query(FloatingPanel)
        assert job.exit_status == 0
        assert app.list_buffers() == []


async def test_missing_executable_opens_nothing(document: Path) -> None:
    app = EditorApp([str(document)], Config(command="lazyjj-panel-test-missing-binary", mapping=None))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()

        assert app.controller.open() is None
        await pilot.pause()

        assert not app.query(FloatingPanel)
        assert app.list_buffers() == []


@needs_sh
async def test_leader_mapping_opens_panel(document: Path) -> None:
    app = EditorApp([str(document)], Config(command="sh -c 'sleep 5'"))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()

        await pilot.press("backslash", "j", "j")
        await pilot.pause()
        await pilot.pause()

        assert len(app.query(FloatingPanel)) == 1
        assert app.in_insert_mode


async def test_user_command_is_registered(document: Path) -> None:
    app = EditorApp([str(document)], Config(mapping=None))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()

        assert "LazyJJ" in app.user_commands
        assert app.current_document() == str(document)


@needs_sh
async def test_hidden_buffer_is_dropped_once_its_job_finishes(document: Path) -> None:
    app = EditorApp([str(document)], Config(command="sh -c 'sleep 1'", mapping=None))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()
        document_window = app.current_window()
        first = app.controller.open()
        await pilot.pause()
        await pilot.pause()
        app.set_current_window(document_window)
        await pilot.pause()
        await pilot.pause()
        assert [buffer.job for buffer in app.list_buffers()] == [first]

        assert await asyncio.to_thread(first.wait, 10)
        second = app.controller.open()

        assert [buffer.job for buffer in app.list_buffers()] == [second]


class KeyLog(Widget, can_focus=True):
    DEFAULT_CSS = """
    KeyLog {
        layer: overlay;
        width: 10;
        height: 3;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self.keys: list[str] = []

    def on_key(self, event: events.Key) -> None:
        self.keys.append(event.key)


async def test_focused_window_sees_keys_of_an_abandoned_sequence(document: Path) -> None:
    app = EditorApp([str(document)], Config(command="lazyjj-panel-test-missing-binary"))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()
        log = KeyLog()
        app.open_window(log)
        await pilot.pause()
        await pilot.pause()

        await pilot.press("backslash", "x")
        await pilot.pause()

        assert log.keys == ["backslash", "x"]
        assert not app.keymaps.pending
