"""Interactive PTY jobs attached to terminal buffers."""

from __future__ import annotations

import os
import threading
from typing import Any, Callable, Optional, Protocol

from loguru import logger

from lazyjj_panel.host.handles import BufferId
from lazyjj_panel.runtime.backend import PTYBackend, build_backend
from lazyjj_panel.runtime.buffer import TerminalBuffer

ExitCallback = Callable[[Optional[int]], None]
LineCallback = Callable[[str], None]


class TerminalJob:
    """Manage one interactive process on a PTY.

    PTY output goes to ``on_output``; the child's stderr is read from a
    separate pipe and reported one line at a time through ``on_stderr_line``.
    ``on_exit`` runs exactly once, after the last stderr line. When
    ``dispatch`` is given every callback is routed through it (e.g. Textual's
    ``App.call_from_thread``), otherwise callbacks run on the reader threads.
    """

    def __init__(
        self,
        command: str,
        *,
        cwd: str | None = None,
        cols: int = 80,
        rows: int = 24,
        on_output: Callable[[str], None] | None = None,
        on_exit: ExitCallback | None = None,
        on_stderr_line: LineCallback | None = None,
        dispatch: Callable[..., Any] | None = None,
    ) -> None:
        self.command = command
        self.cwd = cwd
        self.cols = cols
        self.rows = rows
        self.on_output = on_output
        self.on_exit = on_exit
        self.on_stderr_line = on_stderr_line
        self._dispatch = dispatch

        self._backend: Optional[PTYBackend] = None
        self._stderr: Any = None
        self._reader_thread: Optional[threading.Thread] = None
        self._stderr_thread: Optional[threading.Thread] = None
        self._exited = threading.Event()
        self._closed = False
        self._reaped = False
        self.exit_status: Optional[int] = None
        self.pid: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self._backend is not None and not self._reaped

    def start(self) -> "TerminalJob":
        """Spawn the process and start the reader threads."""
        if self._backend is not None:
            return self

        read_fd, write_fd = os.pipe()
        try:
            self._backend = build_backend(
                self.command,
                cols=self.cols,
                rows=self.rows,
                cwd=self.cwd,
                stderr_fd=write_fd,
            )
        except BaseException:
            os.close(read_fd)
            raise
        finally:
            os.close(write_fd)

        self.pid = getattr(self._backend, "pid", None)
        self._stderr = os.fdopen(read_fd, "r", encoding="utf-8", errors="replace")
        self._stderr_thread = threading.Thread(target=self._stderr_loop, daemon=True)
        self._reader_thread = threading.Thread(target=self._read_loop, daemon=True)
        self._stderr_thread.start()
        self._reader_thread.start()
        logger.info(f"[job] Started {self.command!r} pid={self.pid} cwd={self.cwd}")
        return self

    def write(self, data: str) -> None:
        """Send input to the process."""
        if self._backend is None:
            raise RuntimeError("Job is not started")
        if self._backend.eof or self._reaped:
            return
        self._backend.write(data)

    def resize(self, cols: int, rows: int) -> None:
        self.cols = cols
        self.rows = rows
        if self._backend is not None and not self._reaped:
            self._backend.resize(cols, rows)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the exit callback has been delivered."""
        return self._exited.wait(timeout)

    def close(self) -> None:
        """Kill the process and drop any callbacks still pending."""
        self._closed = True
        if self._backend is not None:
            self._backend.close()

    def _read_loop(self) -> None:
        backend = self._backend
        while not self._closed and not backend.eof:
            try:
                data = backend.read()
            except (OSError, ValueError):
                if self._closed:
                    break
                raise
            if data:
                self._deliver(self.on_output, data)

        self.exit_status = backend.wait()
        self._reaped = True
        backend.close()
        if self._stderr_thread is not None:
            self._stderr_thread.join(timeout=1.0)
        logger.info(f"[job] {self.command!r} pid={self.pid} exited with {self.exit_status}")
        self._deliver(self.on_exit, self.exit_status)
        self._exited.set()

    def _stderr_loop(self) -> None:
        with self._stderr:
            for line in self._stderr:
                self._deliver(self.on_stderr_line, line.rstrip("\r\n"))

    def _deliver(self, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None or self._closed:
            return
        if self._dispatch is None:
            callback(*args)
        else:
            self._dispatch(callback, *args)


class BufferHost(Protocol):
    """Host services needed to run a job inside a buffer."""

    def get_buffer(self, buffer_id: BufferId) -> TerminalBuffer:
        ...

    def call_from_thread(self, callback: Callable[..., Any], *args: Any) -> Any:
        ...


def spawn_interactive(
    host: BufferHost,
    buffer_id: BufferId,
    command: str,
    *,
    cwd: str,
    on_exit: ExitCallback,
    on_error_line: LineCallback,
) -> TerminalJob:
    """Run ``command`` in the terminal buffer ``buffer_id``.

    The buffer shows ``[Process exited N]`` once the process is gone.
    """
    buffer = host.get_buffer(buffer_id)

    def exited(status: Optional[int]) -> None:
        buffer.feed(f"\r\n[Process exited {status if status is not None else -1}]")
        on_exit(status)

    job = TerminalJob(
        command,
        cwd=cwd,
        cols=buffer.columns,
        rows=buffer.lines,
        on_output=buffer.feed,
        on_exit=exited,
        on_stderr_line=on_error_line,
        dispatch=host.call_from_thread,
    )
    buffer.attach(job)
    return job.start()
