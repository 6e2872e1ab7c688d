"""Minimal Textual editor hosting the LazyJJ floating panel."""

from __future__ import annotations

import itertools
import os
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from loguru import logger
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.command import DiscoveryHit, Hit, Hits, Provider
from textual.containers import Horizontal, VerticalScroll
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from lazyjj_panel.config.schema import Config
from lazyjj_panel.controller import LazyJJ, setup
from lazyjj_panel.host.events import WIN_ENTER, WIN_LEAVE, EventHub, Subscription, WindowEvent
from lazyjj_panel.host.handles import BufferId, WindowId
from lazyjj_panel.host.panel import FloatingPanel
from lazyjj_panel.keymap import MATCHED, PENDING, KeySequenceMatcher, parse_keys
from lazyjj_panel.runtime.buffer import TerminalBuffer
from lazyjj_panel.utils.helpers import command_exists

NORMAL = "normal"
INSERT = "insert"

_SEVERITIES = {"error": "error", "warn": "warning", "warning": "warning"}


@dataclass(frozen=True)
class UserCommand:
    """A named command shown in the command palette."""

    name: str
    callback: Callable[[], Any]
    desc: str = ""


class DocumentView(VerticalScroll):
    """Read-only window showing one document (or an unnamed scratch buffer)."""

    DEFAULT_CSS = """
    DocumentView {
        width: 1fr;
        border: round $panel;
    }

    DocumentView:focus {
        border: round $accent;
    }
    """

    def __init__(self, path: Optional[str] = None) -> None:
        super().__init__()
        self.path = os.path.abspath(path) if path else None
        self.window_id: Optional[WindowId] = None
        self.border_title = self.path or "[No Name]"

    def compose(self) -> ComposeResult:
        yield Static(Text(self._read()))

    def _read(self) -> str:
        if not self.path or not os.path.isfile(self.path):
            return ""
        return Path(self.path).read_text(encoding="utf-8", errors="replace")


class UserCommandProvider(Provider):
    """Expose the host's user commands in the command palette."""

    async def discover(self) -> Hits:
        for command in self.app.user_commands.values():
            yield DiscoveryHit(command.name, partial(self.app.run_user_command, command.name), help=command.desc)

    async def search(self, query: str) -> Hits:
        matcher = self.matcher(query)
        for command in self.app.user_commands.values():
            score = matcher.match(command.name)
            if score > 0:
                yield Hit(
                    score,
                    matcher.highlight(command.name),
                    partial(self.app.run_user_command, command.name),
                    help=command.desc,
                )


class EditorApp(App):
    """Document windows, floating windows, terminal buffers and keymaps."""

    CSS = """
    Screen {
        layers: base overlay;
    }

    #documents {
        height: 1fr;
    }

    #status-bar {
        dock: bottom;
        height: 1;
        background: $panel;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+w", "close_window", "Close window"),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    COMMANDS = App.COMMANDS | {UserCommandProvider}

    input_mode = reactive(NORMAL)

    def __init__(
        self,
        paths: Sequence[str] = (),
        config: Config | None = None,
        *,
        open_on_start: bool = False,
    ) -> None:
        super().__init__()
        self.panel_config = config or Config()
        self.paths = list(paths)
        self.open_on_start = open_on_start
        self.hub = EventHub()
        self.user_commands: dict[str, UserCommand] = {}
        self.keymaps = KeySequenceMatcher(timeout_ms=self.panel_config.timeout_ms)
        self.controller: Optional[LazyJJ] = None
        self._windows: dict[WindowId, Widget] = {}
        self._buffers: dict[BufferId, TerminalBuffer] = {}
        self._window_ids = itertools.count(1000)
        self._buffer_ids = itertools.count(1)
        self._current_window: Optional[WindowId] = None
        self._editor_screen = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="documents"):
            for path in self.paths or [None]:
                yield DocumentView(path)
        yield Static("", id="status-bar")

    def on_mount(self) -> None:
        self._editor_screen = self.screen
        documents = list(self.query(DocumentView))
        for view in documents:
            self._register_window(view)
        self._current_window = documents[0].window_id
        documents[0].focus()

        self.controller = setup(self, self.panel_config)
        self._refresh_status()
        if self.open_on_start:
            self.call_after_refresh(self.run_user_command, "LazyJJ")

    def on_unmount(self) -> None:
        for buffer in self._buffers.values():
            if buffer.job is not None:
                buffer.job.close()

    # ------------------------------------------------------------------ #
    # Host contract                                                        #
    # ------------------------------------------------------------------ #

    def current_window(self) -> WindowId:
        return self._current_window

    def window_is_valid(self, window: WindowId) -> bool:
        return window in self._windows

    def set_current_window(self, window: WindowId) -> None:
        self._windows[window].focus()

    def current_document(self) -> Optional[str]:
        widget = self._windows.get(self._current_window)
        return widget.path if isinstance(widget, DocumentView) else None

    def executable(self, command: str) -> bool:
        return command_exists(command)

    def show_message(self, message: str, level: str = "info") -> None:
        self.notify(message, severity=_SEVERITIES.get(level, "information"))

    @property
    def in_insert_mode(self) -> bool:
        return self.input_mode == INSERT

    def start_insert(self) -> None:
        self.input_mode = INSERT

    def stop_insert(self) -> None:
        self.input_mode = NORMAL

    def create_user_command(self, name: str, callback: Callable[[], Any], desc: str = "") -> None:
        self.user_commands[name] = UserCommand(name, callback, desc)

    def map_keys(self, keys: str, callback: Callable[[], Any], desc: str = "") -> None:
        sequence = parse_keys(keys, leader=self.panel_config.leader)
        self.keymaps.add(sequence, (desc or keys, callback))
        logger.debug(f"[host] Mapped {keys} -> {sequence} ({desc})")

    # ------------------------------------------------------------------ #
    # Windows and buffers                                                  #
    # ------------------------------------------------------------------ #

    def open_window(self, widget: Widget) -> WindowId:
        """Mount a floating window on the editor screen and focus it."""
        window = self._register_window(widget)
        self._editor_screen.mount(widget)
        self.call_after_refresh(widget.focus)
        return window

    def hide_window(self, window: WindowId) -> None:
        """Close a window.

        Its buffer survives when ``bufhidden`` is ``hide`` and the job in it
        is still running.
        """
        widget = self._windows.pop(window, None)
        if widget is None:
            return
        buffer = getattr(widget, "buffer", None)
        if buffer is not None and buffer.options.get("bufhidden") != "hide":
            self._wipe_buffer(buffer.id)
        widget.remove()
        self._drop_finished_buffers()
        logger.debug(f"[host] Hid window {window}")

    def set_window_option(self, window: WindowId, name: str, value: Any) -> None:
        widget = self._windows[window]
        if name == "winblend":
            widget.styles.opacity = 1.0 - int(value) / 100
        else:
            raise ValueError(f"Unknown window option {name!r}")

    def when_window_leaves(
        self,
        window: WindowId,
        handler: Callable[[WindowEvent], None],
        *,
        once: bool = False,
    ) -> Subscription:
        return self.hub.subscribe(WIN_LEAVE, handler, scope=window, once=once)

    def create_buffer(self, cols: int = 80, rows: int = 24) -> TerminalBuffer:
        self._drop_finished_buffers()
        buffer = TerminalBuffer(BufferId(next(self._buffer_ids)), cols=cols, rows=rows)
        self._buffers[buffer.id] = buffer
        return buffer

    def get_buffer(self, buffer_id: BufferId) -> TerminalBuffer:
        return self._buffers[buffer_id]

    def list_buffers(self) -> list[TerminalBuffer]:
        return list(self._buffers.values())

    def _wipe_buffer(self, buffer_id: BufferId) -> None:
        buffer = self._buffers.pop(buffer_id, None)
        if buffer is not None and buffer.job is not None:
            buffer.job.close()

    def _drop_finished_buffers(self) -> None:
        shown = {getattr(widget, "buffer", None) for widget in self._windows.values()}
        for buffer in list(self._buffers.values()):
            if buffer in shown or buffer.job is None or buffer.job.is_running:
                continue
            self._wipe_buffer(buffer.id)
            logger.debug(f"[host] Dropped finished buffer {buffer.id}")

    def _register_window(self, widget: Widget) -> WindowId:
        window = WindowId(next(self._window_ids))
        widget.window_id = window
        self._windows[window] = widget
        return window

    def _window_of(self, node: Any) -> Optional[WindowId]:
        while node is not None:
            window = getattr(node, "window_id", None)
            if window is not None and window in self._windows:
                return window
            node = node.parent
        return None

    # ------------------------------------------------------------------ #
    # Focus, modes and keys                                                #
    # ------------------------------------------------------------------ #

    def on_descendant_focus(self, _event: events.DescendantFocus) -> None:
        window = self._window_of(self.focused)
        if window is None or window == self._current_window:
            return

        previous = self._current_window
        self._current_window = window
        if previous is not None and previous in self._windows:
            self.hub.publish(WIN_LEAVE, WindowEvent(previous), scope=previous)
        self.hub.publish(WIN_ENTER, WindowEvent(window), scope=window)
        if not isinstance(self._windows.get(window), FloatingPanel):
            self.input_mode = NORMAL
        self._refresh_status()

    def on_key(self, event: events.Key) -> None:
        # Keys bubble up here after the focused window has handled them, so a
        # prefix that stops matching has already been delivered.
        if self.in_insert_mode:
            return
        status, action = self.keymaps.feed(event.key, event.character)
        if status == PENDING:
            event.stop()
            event.prevent_default()
        elif status == MATCHED:
            event.stop()
            event.prevent_default()
            name, callback = action
            self._invoke(name, callback)

    def run_user_command(self, name: str) -> None:
        command = self.user_commands.get(name)
        if command is None:
            self.show_message(f"Not an editor command: {name}", level="error")
            return
        self._invoke(name, command.callback)

    def _invoke(self, name: str, callback: Callable[[], Any]) -> None:
        try:
            callback()
        except Exception as exc:
            logger.exception(f"[host] {name} failed")
            self.show_message(f"{name} failed: {exc}", level="error")

    def action_close_window(self) -> None:
        window = self._current_window
        widget = self._windows.get(window)
        documents = [w for w in self._windows.values() if isinstance(w, DocumentView)]
        if isinstance(widget, FloatingPanel):
            self.hide_window(window)
            documents[0].focus()
            return
        if len(documents) <= 1:
            self.show_message("Cannot close last window", level="error")
            return
        self._windows.pop(window)
        widget.remove()
        next(w for w in documents if w is not widget).focus()

    def watch_input_mode(self, _mode: str) -> None:
        self._refresh_status()

    def _refresh_status(self) -> None:
        if self._editor_screen is None:
            return
        mode = "-- INSERT --" if self.in_insert_mode else ""
        window = self._current_window
        name = self.current_document() or ("[lazyjj]" if isinstance(self._windows.get(window), FloatingPanel) else "[No Name]")
        self._editor_screen.query_one("#status-bar", Static).update(f"{mode:<14}{name}  win {window}")
