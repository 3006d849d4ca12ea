"""Configuration models."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from replaydeck.models.transitions import TRANSITION_IDS

_DEFAULT_EDITOR = "C:\\Program Files\\LosslessCut\\LosslessCut.exe"


class InputConfig(BaseModel):
    """Watched input directory."""

    model_config = {"extra": "forbid"}

    dir: Path = Field(default=Path("."), description="Directory of incoming replay files.")
    pattern: str = Field(
        default="replay.+mp4",
        description="Regular expression searched in input file names.",
    )
    poll_interval_s: float = Field(default=0.05, gt=0.0)
    stability_threshold_s: float = Field(
        default=1.5,
        ge=0.0,
        description="Seconds a file must stay unchanged before it is taken over.",
    )

    @field_validator("pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid regular expression: {exc}") from exc
        return value


class QueueConfig(BaseModel):
    """Slot pool location and capacity."""

    model_config = {"extra": "forbid"}

    dir: Path = Path(".")
    slots: int = Field(default=9, ge=1, le=99)


class OutputConfig(BaseModel):
    model_config = {"extra": "forbid"}

    path: Path = Path("replay.mp4")


class EditorConfig(BaseModel):
    """External interactive editor."""

    model_config = {"extra": "forbid"}

    program: str = _DEFAULT_EDITOR
    settings_file: Path | None = None


class ExportConfig(BaseModel):
    """Export rendering settings."""

    model_config = {"extra": "forbid"}

    transition: str = "PERL"
    audio_fade_s: float = Field(default=0.2, ge=0.0)
    overlay_image: Path | None = None
    overlay_font: Path | None = None
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"

    @field_validator("transition", mode="before")
    @classmethod
    def _normalize_transition(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.upper()
            if value not in TRANSITION_IDS:
                raise ValueError(
                    f"unknown transition '{value}'. Valid values: {', '.join(TRANSITION_IDS)}"
                )
        return value


class ServerConfig(BaseModel):
    """Control channel bind address."""

    model_config = {"extra": "forbid"}

    host: str = "127.0.0.1"
    port: int = Field(default=12345, ge=0, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class Config(BaseModel):
    """Main configuration."""

    model_config = {"extra": "forbid"}

    version: Literal[1] = 1
    input: InputConfig = Field(default_factory=InputConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    editor: EditorConfig = Field(default_factory=EditorConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
