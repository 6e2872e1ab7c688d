"""Filesystem and logging helpers."""

from __future__ import annotations

import os
import shlex
import shutil
from pathlib import Path

from loguru import logger

LOG_FILENAME = "lazyjj-panel.log"


def ensure_dir(path: Path) -> Path:
    """Create ``path`` if needed and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Return ``~/.lazyjj-panel`` (``LAZYJJ_PANEL_HOME`` overrides it)."""
    override = os.getenv("LAZYJJ_PANEL_HOME", "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".lazyjj-panel"


def get_log_path() -> Path:
    return get_data_path() / "logs" / LOG_FILENAME


def command_exists(command: str) -> bool:
    """Return True when the first token of ``command`` resolves on PATH."""
    try:
        token = shlex.split(command)[0] if command else ""
    except ValueError:
        token = command.strip().split(" ")[0] if command else ""
    return bool(token and shutil.which(token))


def configure_logging(level: str = "INFO", path: Path | None = None) -> Path:
    """Send loguru output to a rotating log file.

    The TUI owns the terminal, so the default stderr sink is removed.
    """
    target = path or get_log_path()
    ensure_dir(target.parent)
    logger.remove()
    logger.add(
        str(target),
        level=level.upper(),
        rotation="5 MB",
        retention="7 days",
        enqueue=True,
    )
    return target
