"""Environment overrides for the configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

_REPO_DOTENV = Path(__file__).resolve().parents[3] / ".env"


class EnvOverrides(BaseSettings):
    """Config sections read from `REPLAYDECK_<SECTION>__<FIELD>` variables.

    Values stay raw here; they are validated together with the YAML config.
    """

    model_config = SettingsConfigDict(
        env_prefix="REPLAYDECK_",
        env_nested_delimiter="__",
        env_file=(_REPO_DOTENV, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    input: dict[str, Any] = {}
    queue: dict[str, Any] = {}
    output: dict[str, Any] = {}
    editor: dict[str, Any] = {}
    export: dict[str, Any] = {}
    server: dict[str, Any] = {}

    def as_overrides(self) -> dict[str, dict[str, Any]]:
        """Non-empty sections only."""
        return {key: value for key, value in self.model_dump().items() if value}
