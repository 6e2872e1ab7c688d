"""Host editor contract and handle types."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from lazyjj_panel.host.handles import BufferId, PanelHandle, WindowId


class Host(Protocol):
    """Editor services used by the LazyJJ controller."""

    def current_window(self) -> WindowId:
        """Return the focused window."""

    def window_is_valid(self, window: WindowId) -> bool:
        """Return True while ``window`` exists."""

    def set_current_window(self, window: WindowId) -> None:
        """Move focus to ``window``."""

    def current_document(self) -> Optional[str]:
        """Return the path shown in the focused window, if any."""

    def executable(self, command: str) -> bool:
        """Return True when ``command`` resolves on PATH."""

    def show_message(self, message: str, level: str = "info") -> None:
        """Show a user-visible notification."""

    def start_insert(self) -> None:
        """Switch the editor into insert mode."""

    def create_user_command(self, name: str, callback: Callable[[], Any], desc: str = "") -> None:
        """Register a named command."""

    def map_keys(self, keys: str, callback: Callable[[], Any], desc: str = "") -> None:
        """Bind a normal-mode key sequence."""


__all__ = ["BufferId", "Host", "PanelHandle", "WindowId"]
