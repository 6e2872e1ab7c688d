"""Opaque handles for host windows and buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

WindowId = NewType("WindowId", int)
BufferId = NewType("BufferId", int)


@dataclass(frozen=True)
class PanelHandle:
    """Window and buffer created for one panel."""

    window: WindowId
    buffer: BufferId
