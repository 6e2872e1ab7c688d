from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from lazyjj_panel.config import Config, get_config_path, load_config, save_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("MAPPING", "COL_RANGE", "ROW_RANGE", "COMMAND", "LEADER", "TIMEOUT_MS", "CONFIG", "HOME"):
        monkeypatch.delenv(f"LAZYJJ_PANEL_{name}", raising=False)


def test_defaults() -> None:
    config = Config()

    assert config.mapping == "<leader>jj"
    assert config.col_range == 0.9
    assert config.row_range == 0.8
    assert config.command == "lazyjj"
    assert config.leader == "\\"


def test_options_override_defaults() -> None:
    config = Config(col_range=0.5, mapping="<C-g>")

    assert config.col_range == 0.5
    assert config.row_range == 0.8
    assert config.mapping == "<C-g>"


@pytest.mark.parametrize("value", [False, None, ""])
def test_mapping_can_be_disabled(value: object) -> None:
    assert Config(mapping=value).mapping is None


@pytest.mark.parametrize("field", ["col_range", "row_range"])
@pytest.mark.parametrize("value", [0, -0.1, 1.5])
def test_fraction_bounds_are_validated(field: str, value: float) -> None:
    with pytest.raises(ValidationError):
        Config(**{field: value})


def test_full_size_is_allowed() -> None:
    assert Config(col_range=1, row_range=1).col_range == 1


def test_config_is_read_only() -> None:
    config = Config()
    with pytest.raises(ValidationError):
        config.col_range = 0.5


def test_environment_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAZYJJ_PANEL_COL_RANGE", "0.7")

    assert Config().col_range == 0.7
    assert Config(col_range=0.6).col_range == 0.6


def test_load_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "missing.json") == Config()


def test_load_and_save_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    save_config(Config(row_range=0.5, mapping=None), path)

    config = load_config(path)

    assert config.row_range == 0.5
    assert config.mapping is None


def test_load_overrides_win_over_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"col_range": 0.5, "command": "lazyjj --debug"}))

    config = load_config(path, col_range=0.75, mapping=None)

    assert config.col_range == 0.75
    assert config.command == "lazyjj --debug"
    assert config.mapping == "<leader>jj"


def test_invalid_json_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json")

    assert load_config(path) == Config()


def test_config_path_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAZYJJ_PANEL_CONFIG", str(tmp_path / "custom.json"))

    assert get_config_path() == tmp_path / "custom.json"


def test_config_path_under_home_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAZYJJ_PANEL_HOME", str(tmp_path))

    assert get_config_path() == tmp_path / "config.json"
