"""Terminal buffers: a pyte screen fed by a PTY job."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

import pyte
from rich.style import Style
from rich.text import Text

from lazyjj_panel.host.handles import BufferId

# pyte reports the classic ANSI yellow as "brown".
_COLOR_ALIASES = {"brown": "yellow", "brightbrown": "bright_yellow"}


def _pyte_color(value: str) -> str | None:
    if not value or value == "default":
        return None
    if value in _COLOR_ALIASES:
        return _COLOR_ALIASES[value]
    if value.startswith("bright"):
        return f"bright_{value[len('bright'):]}"
    if len(value) == 6:
        return f"#{value}"
    return value


def _char_style(char: Any) -> Style:
    return Style(
        color=_pyte_color(char.fg),
        bgcolor=_pyte_color(char.bg),
        bold=char.bold or None,
        italic=char.italics or None,
        underline=char.underscore or None,
        reverse=char.reverse or None,
    )


class _ResponderScreen(pyte.HistoryScreen):
    """HistoryScreen that sends device reports back to the job."""

    responder: Optional[Callable[[str], None]] = None

    def write_process_input(self, data: str) -> None:
        if self.responder is not None:
            self.responder(data)


class TerminalBuffer:
    """A terminal buffer with per-buffer options and an attached job."""

    def __init__(self, buffer_id: BufferId, cols: int = 80, rows: int = 24) -> None:
        self.id = buffer_id
        self.options: dict[str, Any] = {"filetype": "", "bufhidden": ""}
        self.job: Any = None
        self._lock = threading.Lock()
        self._listeners: list[Callable[[], None]] = []
        self._screen = _ResponderScreen(max(1, cols), max(1, rows), history=5000)
        self._screen.set_mode(pyte.modes.LNM)
        self._stream = pyte.Stream(self._screen)

    @property
    def columns(self) -> int:
        return self._screen.columns

    @property
    def lines(self) -> int:
        return self._screen.lines

    def attach(self, job: Any) -> None:
        """Attach a job: device reports from the screen are written to it."""
        self.job = job
        self._screen.responder = job.write

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def feed(self, data: str) -> None:
        """Feed raw PTY output into the screen and notify listeners."""
        if not data:
            return
        with self._lock:
            self._stream.feed(data)
        for listener in list(self._listeners):
            listener()

    def resize(self, cols: int, rows: int) -> None:
        cols, rows = max(1, cols), max(1, rows)
        with self._lock:
            if (cols, rows) == (self._screen.columns, self._screen.lines):
                return
            self._screen.resize(rows, cols)
        if self.job is not None:
            self.job.resize(cols, rows)

    def display(self) -> list[str]:
        """Return the visible screen as plain text lines."""
        with self._lock:
            return [line.rstrip() for line in self._screen.display]

    def cursor(self) -> tuple[int, int]:
        with self._lock:
            return self._screen.cursor.x, self._screen.cursor.y

    def render(self, show_cursor: bool = False) -> Text:
        """Render the visible screen with colors as Rich text."""
        text = Text(no_wrap=True, overflow="crop")
        with self._lock:
            screen = self._screen
            cursor = (screen.cursor.x, screen.cursor.y) if show_cursor and not screen.cursor.hidden else None
            for y in range(screen.lines):
                row = screen.buffer[y]
                run, run_style = "", None
                for x in range(screen.columns):
                    char = row[x]
                    # The cell after a wide character is a zero-width placeholder.
                    if char.data == "":
                        continue
                    style = _char_style(char)
                    if cursor == (x, y):
                        style += Style(reverse=not char.reverse)
                    if style != run_style and run:
                        text.append(run, run_style)
                        run = ""
                    run += char.data
                    run_style = style
                if run:
                    text.append(run, run_style)
                if y < screen.lines - 1:
                    text.append("\n")
        return text
