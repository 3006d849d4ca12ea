"""Export input model."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from replaydeck.models.enums import ArtifactKind
from replaydeck.pool.naming import SlotNaming


class ExportClip(BaseModel):
    """One cut replay handed to the assembler, with its artifact paths."""

    model_config = {"frozen": True}

    slot: int
    original: Path
    cut: Path
    audio_faded: Path
    overlayed: Path

    @classmethod
    def for_slot(cls, naming: SlotNaming, slot: int) -> ExportClip:
        return cls(
            slot=slot,
            original=naming.path(slot, ArtifactKind.ORIGINAL),
            cut=naming.path(slot, ArtifactKind.CUT),
            audio_faded=naming.path(slot, ArtifactKind.AUDIO_FADED),
            overlayed=naming.path(slot, ArtifactKind.OVERLAYED),
        )
