"""Configuration schema for lazyjj-panel."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Options accepted by ``setup``.

    Values passed to the constructor win over ``LAZYJJ_PANEL_*`` environment
    variables, which win over the defaults below.
    """

    mapping: str | None = "<leader>jj"
    col_range: float = Field(default=0.9, gt=0, le=1)
    row_range: float = Field(default=0.8, gt=0, le=1)
    command: str = "lazyjj"
    leader: str = "\\"
    timeout_ms: int = Field(default=1000, ge=0)

    @field_validator("mapping", mode="before")
    @classmethod
    def _disable_mapping(cls, value: Any) -> Any:
        # `mapping = false` in the config file turns the keymap off.
        if value is False or value == "":
            return None
        return value

    @field_validator("command")
    @classmethod
    def _require_command(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("command must not be empty")
        return value

    model_config = ConfigDict(
        env_prefix="LAZYJJ_PANEL_",
        extra="ignore",
        frozen=True,
    )
