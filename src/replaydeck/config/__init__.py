"""Configuration loading and validation."""

from replaydeck.config.loader import (
    ConfigError,
    ConfigErrorCode,
    deep_merge,
    load_config,
    load_config_from_dict,
)

__all__ = [
    "ConfigError",
    "ConfigErrorCode",
    "deep_merge",
    "load_config",
    "load_config_from_dict",
]
