"""PTY backend for running an interactive tool inside a terminal buffer."""

from __future__ import annotations

import os
from typing import Optional, Protocol

import pexpect
from loguru import logger


class PTYBackend(Protocol):
    """Minimal PTY backend contract."""

    eof: bool

    def read(self) -> str:
        """Read a stdout chunk, empty when nothing is pending."""

    def write(self, data: str) -> None:
        """Write input data."""

    def resize(self, cols: int, rows: int) -> None:
        """Apply terminal resize."""

    def wait(self) -> Optional[int]:
        """Reap the child and return its exit status."""

    def close(self) -> None:
        """Close process resources."""


class _SplitStderrSpawn(pexpect.spawn):
    """pexpect.spawn that keeps one extra descriptor open in the child.

    The child redirects its stderr onto that descriptor in ``preexec_fn``,
    so error output bypasses the PTY.
    """

    def __init__(self, command: str, stderr_fd: int, **kwargs) -> None:
        self._stderr_fd = stderr_fd
        super().__init__(command, preexec_fn=self._redirect_stderr, **kwargs)

    def _spawnpty(self, args, **kwargs):
        kwargs["pass_fds"] = (self._stderr_fd,)
        return super()._spawnpty(args, **kwargs)

    def _redirect_stderr(self) -> None:
        os.dup2(self._stderr_fd, 2)
        os.close(self._stderr_fd)


class UnixPexpectBackend:
    """PTY backend for Unix-like systems via pexpect."""

    def __init__(
        self,
        command: str,
        cols: int = 80,
        rows: int = 24,
        cwd: str | None = None,
        stderr_fd: int | None = None,
    ) -> None:
        env = dict(os.environ)
        env.setdefault("TERM", "xterm-256color")
        env.setdefault("COLORTERM", "truecolor")

        options = dict(
            encoding="utf-8",
            codec_errors="ignore",
            echo=False,
            dimensions=(rows, cols),
            cwd=cwd,
            env=env,
        )
        if stderr_fd is None:
            self._proc = pexpect.spawn(command, **options)
        else:
            self._proc = _SplitStderrSpawn(command, stderr_fd, **options)
        self.eof = False

    @property
    def pid(self) -> int:
        return self._proc.pid

    def read(self) -> str:
        try:
            return self._proc.read_nonblocking(size=4096, timeout=0.1)
        except pexpect.TIMEOUT:
            return ""
        except pexpect.EOF:
            self.eof = True
            return ""

    def write(self, data: str) -> None:
        self._proc.send(data)

    def resize(self, cols: int, rows: int) -> None:
        self._proc.setwinsize(rows, cols)

    def wait(self) -> Optional[int]:
        if self._proc.isalive():
            self._proc.wait()
        if self._proc.exitstatus is not None:
            return self._proc.exitstatus
        return self._proc.signalstatus

    def close(self) -> None:
        # Also releases the PTY master of a child that already exited.
        self._proc.close(force=True)


def build_backend(
    command: str,
    cols: int = 80,
    rows: int = 24,
    cwd: str | None = None,
    stderr_fd: int | None = None,
) -> PTYBackend:
    """Build the PTY backend for the current platform."""
    if os.name == "nt":
        raise RuntimeError("PTY jobs need a POSIX platform")
    backend = UnixPexpectBackend(command, cols=cols, rows=rows, cwd=cwd, stderr_fd=stderr_fd)
    logger.info(f"[pty] Using UnixPexpectBackend for: {command[:60]} (cwd={cwd})")
    return backend
