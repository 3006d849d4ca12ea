"""Transition descriptors applied between clips during export."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TransitionDescriptor(BaseModel):
    """Named visual effect with duration and optional effect parameters.

    `effect` is an ffmpeg `xfade` transition name; `params` are passed through
    as extra `xfade` options (e.g. `expr` for `effect="custom"`).
    """

    model_config = {"frozen": True}

    id: str
    effect: str
    duration_ms: int = Field(gt=0)
    params: dict[str, Any] | None = None

    @property
    def duration_s(self) -> float:
        return self.duration_ms / 1000.0


# Ordered cycle used by the TRANSITION command.
# CUTX emulates a hard cut with a one-frame fade.
TRANSITIONS: tuple[TransitionDescriptor, ...] = (
    TransitionDescriptor(id="CUTX", effect="fade", duration_ms=33),
    TransitionDescriptor(id="PERL", effect="dissolve", duration_ms=300),
    TransitionDescriptor(id="FADE", effect="fade", duration_ms=300),
    TransitionDescriptor(id="ZOOM", effect="zoomin", duration_ms=300),
    TransitionDescriptor(id="MRPH", effect="distance", duration_ms=300),
    TransitionDescriptor(id="DREA", effect="hblur", duration_ms=300),
    TransitionDescriptor(id="RIPP", effect="pixelize", duration_ms=300),
    TransitionDescriptor(id="WARP", effect="slideleft", duration_ms=300),
    TransitionDescriptor(id="WIPE", effect="wipeleft", duration_ms=300),
    TransitionDescriptor(id="RADI", effect="radial", duration_ms=300),
    TransitionDescriptor(id="CUBE", effect="coverleft", duration_ms=400),
    TransitionDescriptor(id="SWAP", effect="squeezeh", duration_ms=400),
)

TRANSITION_IDS: tuple[str, ...] = tuple(t.id for t in TRANSITIONS)


def get_transition(transition_id: str) -> TransitionDescriptor:
    """Look up a descriptor by id (case-insensitive).

    Raises:
        KeyError: If the id is not in the table
    """
    wanted = transition_id.upper()
    for descriptor in TRANSITIONS:
        if descriptor.id == wanted:
            return descriptor
    raise KeyError(transition_id)


class TransitionCycle:
    """Process-wide transition selection over the fixed table."""

    def __init__(
        self,
        initial_id: str,
        table: tuple[TransitionDescriptor, ...] = TRANSITIONS,
    ) -> None:
        if not table:
            raise ValueError("Transition table must not be empty")
        self._table = table
        ids = [t.id for t in table]
        wanted = initial_id.upper()
        if wanted not in ids:
            raise ValueError(f"Unknown transition '{initial_id}'. Valid values: {', '.join(ids)}")
        self._index = ids.index(wanted)

    @property
    def current(self) -> TransitionDescriptor:
        return self._table[self._index]

    def advance(self) -> TransitionDescriptor:
        """Select the next descriptor, wrapping to the first after the last."""
        self._index = (self._index + 1) % len(self._table)
        return self.current
