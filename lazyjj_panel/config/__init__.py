"""Configuration module for lazyjj-panel."""

from lazyjj_panel.config.loader import get_config_path, load_config, save_config
from lazyjj_panel.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
