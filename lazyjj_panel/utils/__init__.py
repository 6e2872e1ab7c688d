"""Utility functions for lazyjj-panel."""

from lazyjj_panel.utils.helpers import command_exists, configure_logging, ensure_dir, get_data_path

__all__ = ["command_exists", "configure_logging", "ensure_dir", "get_data_path"]
