"""Configuration loading and validation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from replaydeck.config.settings import EnvOverrides
from replaydeck.models.config import Config

logger = logging.getLogger(__name__)


class ConfigErrorCode(str, Enum):
    """Stable config error codes for runtime and API mapping."""

    FILE_NOT_FOUND = "CONFIG_FILE_NOT_FOUND"
    YAML_INVALID = "CONFIG_YAML_INVALID"
    ROOT_NOT_MAPPING = "CONFIG_ROOT_NOT_MAPPING"
    VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    UNKNOWN = "CONFIG_UNKNOWN"


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(
        self,
        message: str,
        *,
        code: ConfigErrorCode = ConfigErrorCode.UNKNOWN,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.path = path
        self.__cause__ = cause


def load_config(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    *,
    use_env: bool = True,
) -> Config:
    """Load configuration from defaults, YAML file, environment and overrides.

    Later sources win: defaults < YAML file < `REPLAYDECK_*` env < overrides.

    Args:
        path: Optional path to YAML config file
        overrides: Nested mapping, typically built from CLI flags
        use_env: Read `REPLAYDECK_*` variables and `.env`

    Returns:
        Validated Config instance

    Raises:
        ConfigError: If file not found, YAML invalid, or validation fails
    """
    raw: dict[str, Any] = {}
    if path is not None:
        raw = _read_yaml(path)

    if use_env:
        raw = deep_merge(raw, EnvOverrides().as_overrides())
    if overrides:
        raw = deep_merge(raw, overrides)

    return load_config_from_dict(raw, path=path)


def load_config_from_dict(data: Mapping[str, Any], *, path: Path | None = None) -> Config:
    """Validate configuration from a dict (useful for testing).

    Raises:
        ConfigError: If validation fails
    """
    try:
        return Config.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(
            format_validation_error(e, path),
            code=ConfigErrorCode.VALIDATION_FAILED,
            path=path,
            cause=e,
        ) from e


def deep_merge(base: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Return `base` updated recursively with `update`. Inputs are not modified."""
    merged: dict[str, Any] = dict(base)
    for key, value in update.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def format_validation_error(e: ValidationError, path: Path | None = None) -> str:
    """Format Pydantic validation error for human readability."""
    prefix = f"Config validation failed ({path}):" if path else "Config validation failed:"
    errors = []
    for err in e.errors():
        loc = " -> ".join(str(x) for x in err["loc"])
        msg = err["msg"]
        errors.append(f"  {loc}: {msg}")
    return prefix + "\n" + "\n".join(errors)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}",
            code=ConfigErrorCode.FILE_NOT_FOUND,
            path=path,
        )

    try:
        with path.open() as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}: {e}",
            code=ConfigErrorCode.YAML_INVALID,
            path=path,
            cause=e,
        ) from e

    # An empty file means "all defaults".
    if raw is None:
        logger.info("Config file %s is empty, using defaults", path)
        return {}

    if not isinstance(raw, dict):
        raise ConfigError(
            f"Config must be a YAML mapping, got {type(raw).__name__}",
            code=ConfigErrorCode.ROOT_NOT_MAPPING,
            path=path,
        )
    return raw
