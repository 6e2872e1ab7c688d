"""Floating terminal panel: geometry, widgets and the panel factory."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from loguru import logger
from textual import events
from textual.containers import Container
from textual.widget import Widget

from lazyjj_panel.config.schema import Config
from lazyjj_panel.host.handles import PanelHandle
from lazyjj_panel.runtime.buffer import TerminalBuffer

if TYPE_CHECKING:
    from lazyjj_panel.host.app import EditorApp

FILETYPE = "lazyjj"
BORDER = "round"

# Escape sequences for keys that carry no printable character.
_KEY_SEQUENCES = {
    "enter": "\r",
    "tab": "\t",
    "shift+tab": "\x1b[Z",
    "backspace": "\x7f",
    "delete": "\x1b[3~",
    "insert": "\x1b[2~",
    "up": "\x1b[A",
    "down": "\x1b[B",
    "left": "\x1b[D",
    "right": "\x1b[C",
    "home": "\x1b[H",
    "end": "\x1b[F",
    "pageup": "\x1b[5~",
    "pagedown": "\x1b[6~",
    "escape": "\x1b",
    "f1": "\x1bOP",
    "f2": "\x1bOQ",
    "f3": "\x1bOR",
    "f4": "\x1bOS",
}


@dataclass(frozen=True)
class PanelGeometry:
    """Outer position and size of a floating window, in cells."""

    col: int
    row: int
    width: int
    height: int


def centered_geometry(columns: int, lines: int, col_range: float, row_range: float) -> PanelGeometry:
    """Size a window as a fraction of the display and center it."""
    width = min(columns, max(1, math.ceil(columns * col_range)))
    height = min(lines, max(1, math.ceil(lines * row_range)))
    return PanelGeometry(
        col=max(0, (columns - width) // 2),
        row=max(0, (lines - height) // 2),
        width=width,
        height=height,
    )


def encode_key(key: str, character: Optional[str]) -> Optional[str]:
    """Translate a Textual key event into bytes for the PTY."""
    if key in _KEY_SEQUENCES:
        return _KEY_SEQUENCES[key]
    if character:
        return character
    if key.startswith("ctrl+") and len(key) == 6:
        ctrl_char = key[-1]
        if "a" <= ctrl_char <= "z":
            return chr(ord(ctrl_char) - 96)
    if key == "ctrl+space":
        return "\x00"
    return None


class TerminalView(Widget, can_focus=True):
    """Renders a terminal buffer and forwards keys to its job in insert mode."""

    DEFAULT_CSS = """
    TerminalView {
        width: 1fr;
        height: 1fr;
    }
    """

    def __init__(self, buffer: TerminalBuffer) -> None:
        super().__init__()
        self.buffer = buffer
        self._escape_pending = False

    def on_mount(self) -> None:
        self.buffer.add_listener(self.refresh)

    def on_unmount(self) -> None:
        self.buffer.remove_listener(self.refresh)

    def render(self):
        return self.buffer.render(show_cursor=self.has_focus)

    def on_resize(self, event: events.Resize) -> None:
        self.buffer.resize(event.size.width, event.size.height)

    def on_key(self, event: events.Key) -> None:
        app = self.app
        if not app.in_insert_mode:
            if event.key in ("i", "a", "enter"):
                app.start_insert()
                event.stop()
                event.prevent_default()
            return

        event.stop()
        event.prevent_default()
        # ctrl+\ ctrl+n leaves insert mode, as in a Neovim terminal.
        if self._escape_pending:
            self._escape_pending = False
            if event.key == "ctrl+n":
                app.stop_insert()
                return
            self._send("\x1c")
        if event.key == "ctrl+backslash":
            self._escape_pending = True
            return

        data = encode_key(event.key, event.character)
        if data:
            self._send(data)

    def _send(self, data: str) -> None:
        job = self.buffer.job
        if job is not None:
            job.write(data)


class FloatingPanel(Container):
    """A bordered window on the overlay layer hosting one terminal buffer."""

    DEFAULT_CSS = f"""
    FloatingPanel {{
        layer: overlay;
        background: $surface;
        border: {BORDER} $accent;
        padding: 0;
    }}
    """

    def __init__(self, buffer: TerminalBuffer, geometry: PanelGeometry) -> None:
        super().__init__()
        self.buffer = buffer
        self.geometry = geometry
        self.window_id = None
        self.styles.width = geometry.width
        self.styles.height = geometry.height
        self.styles.offset = (geometry.col, geometry.row)

    def compose(self):
        yield TerminalView(self.buffer)

    def focus(self, scroll_visible: bool = True) -> "FloatingPanel":
        for view in self.query(TerminalView):
            view.focus(scroll_visible)
        return self


def create_floating_panel(host: "EditorApp", config: Config) -> PanelHandle:
    """Open a centered floating terminal window and return its handles."""
    geometry = centered_geometry(host.size.width, host.size.height, config.col_range, config.row_range)
    # The border takes one cell on every side.
    buffer = host.create_buffer(cols=geometry.width - 2, rows=geometry.height - 2)
    window = host.open_window(FloatingPanel(buffer, geometry))

    buffer.options["filetype"] = FILETYPE
    host.set_window_option(window, "winblend", 0)
    buffer.options["bufhidden"] = "hide"
    host.when_window_leaves(window, lambda _event: host.hide_window(window), once=True)

    logger.debug(f"[panel] Opened window {window} buffer {buffer.id} at {geometry}")
    return PanelHandle(window=window, buffer=buffer.id)
