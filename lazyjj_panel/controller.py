"""Open lazyjj in a floating panel and hand focus back when it exits."""

from __future__ import annotations

import re
from typing import Any, Callable, Mapping, Optional

from loguru import logger

from lazyjj_panel.config.schema import Config
from lazyjj_panel.host import Host, WindowId
from lazyjj_panel.host.panel import create_floating_panel
from lazyjj_panel.root import find_jj_root
from lazyjj_panel.runtime.job import spawn_interactive

COMMAND_NAME = "LazyJJ"
NOT_FOUND_MESSAGE = "lazyjj executable not found. Please install lazyjj and ensure it's in your PATH."
ERROR_LINE_RE = re.compile(r"^Error:")


class LazyJJ:
    """Controller behind the ``LazyJJ`` command.

    Each ``open`` call is independent: it resolves the repository root,
    creates its own panel and job and keeps no state afterwards. The
    collaborators default to the real root finder, panel factory and job
    runner.
    """

    def __init__(
        self,
        host: Host,
        config: Config,
        *,
        find_root: Callable[..., str] = find_jj_root,
        create_panel: Callable[..., Any] = create_floating_panel,
        spawn: Callable[..., Any] = spawn_interactive,
    ) -> None:
        self.host = host
        self.config = config
        self._find_root = find_root
        self._create_panel = create_panel
        self._spawn = spawn

    def open(self) -> Optional[Any]:
        """Run the configured tool in a new floating panel.

        Returns the job, or ``None`` when the executable is missing.
        """
        command = self.config.command
        if not self.host.executable(command):
            logger.warning(f"[lazyjj] {command!r} not found on PATH")
            self.host.show_message(NOT_FOUND_MESSAGE, level="error")
            return None

        prev_win = self.host.current_window()
        cwd = self._find_root(document=self.host.current_document())
        handle = self._create_panel(self.host, self.config)
        job = self._spawn(
            self.host,
            handle.buffer,
            command,
            cwd=cwd,
            on_exit=lambda _status: self._restore_focus(prev_win),
            on_error_line=self._report_error_line,
        )
        self.host.start_insert()
        logger.info(f"[lazyjj] Opened {command!r} in {cwd} (window {handle.window})")
        return job

    def _restore_focus(self, window: WindowId) -> None:
        if self.host.window_is_valid(window):
            self.host.set_current_window(window)
        else:
            logger.debug(f"[lazyjj] Window {window} is gone, leaving focus as is")

    def _report_error_line(self, line: str) -> None:
        if ERROR_LINE_RE.match(line):
            self.host.show_message(f"lazyjj error: {line}", level="error")
        else:
            logger.debug(f"[lazyjj] stderr: {line}")


def setup(host: Host, options: Config | Mapping[str, Any] | None = None) -> LazyJJ:
    """Build the config, register the ``LazyJJ`` command and its keymap.

    ``options`` are merged over the defaults; invalid values raise
    ``pydantic.ValidationError``.
    """
    config = options if isinstance(options, Config) else Config(**dict(options or {}))
    controller = LazyJJ(host, config)

    host.create_user_command(COMMAND_NAME, controller.open, desc=COMMAND_NAME)
    if config.mapping:
        host.map_keys(config.mapping, controller.open, desc=COMMAND_NAME)
    return controller
