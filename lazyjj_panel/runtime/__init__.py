"""PTY-level runtime for the panel's terminal job."""

from .backend import PTYBackend, build_backend
from .buffer import TerminalBuffer
from .job import TerminalJob, spawn_interactive

__all__ = [
    "PTYBackend",
    "TerminalBuffer",
    "TerminalJob",
    "build_backend",
    "spawn_interactive",
]
