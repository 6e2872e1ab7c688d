"""Repository root discovery for Jujutsu working copies."""

from __future__ import annotations

import os

from loguru import logger

JJ_MARKER = ".jj"


def find_jj_root(start_path: str | None = None, *, document: str | None = None) -> str:
    """Walk upwards from ``start_path`` looking for a ``.jj`` directory.

    When ``start_path`` is empty the current ``document`` path is used instead.
    Unnamed documents and trees without a marker fall back to the process
    working directory.
    """
    path = start_path or document
    if not path:
        return os.getcwd()

    path = os.path.dirname(path)
    while path:
        if os.path.isdir(os.path.join(path, JJ_MARKER)):
            logger.debug(f"[root] Found {JJ_MARKER} in {path}")
            return path

        parent = os.path.dirname(path)
        if parent == path:
            break
        path = parent

    cwd = os.getcwd()
    logger.debug(f"[root] No {JJ_MARKER} above {start_path or document}, using cwd {cwd}")
    return cwd
