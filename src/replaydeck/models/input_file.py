"""Input file event model."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel


class InputFile(BaseModel):
    """A file in the input directory that has stopped growing."""

    path: Path
    size_bytes: int
    modified_at: datetime

    @property
    def name(self) -> str:
        return self.path.name
