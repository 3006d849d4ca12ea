"""Slot artifact file naming inside the queue directory."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from replaydeck.models.enums import ArtifactKind

# kind -> (name suffix, extension)
_KIND_SUFFIXES: dict[ArtifactKind, tuple[str, str]] = {
    ArtifactKind.ORIGINAL: ("", "mp4"),
    ArtifactKind.CUT: ("-cutted", "mp4"),
    ArtifactKind.AUDIO_FADED: ("-faded", "mp4"),
    ArtifactKind.OVERLAYED: ("-overlayed", "mp4"),
    ArtifactKind.EDIT_PROJECT: ("-proj", "llc"),
}

_ARTIFACT_NAME_RE = re.compile(r"^replay-\d{2,}(-cutted|-faded|-overlayed|-proj)?\.(mp4|llc)$")


def artifact_filename(slot: int, kind: ArtifactKind = ArtifactKind.ORIGINAL) -> str:
    """Return the file name of a slot artifact, e.g. `replay-03-cutted.mp4`."""
    suffix, ext = _KIND_SUFFIXES[kind]
    return f"replay-{slot:02d}{suffix}.{ext}"


def path_for(queue_dir: Path, slot: int, kind: ArtifactKind = ArtifactKind.ORIGINAL) -> Path:
    """Return the path of a slot artifact under the queue directory."""
    return queue_dir / artifact_filename(slot, kind)


@dataclass(frozen=True)
class SlotNaming:
    """Path mapping bound to one queue directory."""

    queue_dir: Path

    def path(self, slot: int, kind: ArtifactKind = ArtifactKind.ORIGINAL) -> Path:
        return path_for(self.queue_dir, slot, kind)

    def artifacts(self, slot: int) -> list[tuple[ArtifactKind, Path]]:
        """All artifact kinds of a slot with their paths, original first."""
        return [(kind, self.path(slot, kind)) for kind in ArtifactKind]

    def owns(self, path: Path) -> bool:
        """True if the path is a slot artifact inside this queue directory."""
        if _ARTIFACT_NAME_RE.match(path.name) is None:
            return False
        return path.parent.resolve() == self.queue_dir.resolve()
