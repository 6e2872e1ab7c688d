"""Load and save the lazyjj-panel configuration file."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from loguru import logger

from lazyjj_panel.config.schema import Config
from lazyjj_panel.utils.helpers import get_data_path


def get_config_path() -> Path:
    """Return the config file path (``LAZYJJ_PANEL_CONFIG`` overrides it)."""
    override = os.getenv("LAZYJJ_PANEL_CONFIG", "").strip()
    if override:
        return Path(override).expanduser()
    return get_data_path() / "config.json"


def read_options(path: Path | None = None) -> dict[str, Any]:
    """Read raw options from the config file.

    A missing file yields no options. A file that is not a JSON object is
    reported and ignored.
    """
    target = path or get_config_path()
    if not target.exists():
        return {}

    try:
        data = json.loads(target.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"[config] Ignoring unreadable config {target}: {exc}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"[config] Ignoring config {target}: expected a JSON object")
        return {}
    return data


def load_config(path: Path | None = None, **overrides: Any) -> Config:
    """Build a Config from the file, with keyword overrides applied on top."""
    options = read_options(path)
    options.update({key: value for key, value in overrides.items() if value is not None})
    return Config(**options)


def save_config(config: Config, path: Path | None = None) -> Path:
    """Write the config as JSON and return the path written."""
    target = path or get_config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
    return target
