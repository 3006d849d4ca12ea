"""Projection of slot state from artifact files on disk."""

from __future__ import annotations

from replaydeck.models.enums import ArtifactKind, SlotState
from replaydeck.pool.naming import SlotNaming


def derive_state(original_exists: bool, cut_exists: bool) -> SlotState:
    """Derive the logical slot state from artifact presence.

    A cut without an original does not count: the slot is CLEAR.
    """
    if not original_exists:
        return SlotState.CLEAR
    if cut_exists:
        return SlotState.CUT
    return SlotState.UNCUT


def scan_states(naming: SlotNaming, capacity: int) -> list[SlotState]:
    """Stat `original` and `cut` for slots 1..capacity and derive their states."""
    states: list[SlotState] = []
    for slot in range(1, capacity + 1):
        original_exists = naming.path(slot, ArtifactKind.ORIGINAL).exists()
        cut_exists = naming.path(slot, ArtifactKind.CUT).exists()
        states.append(derive_state(original_exists, cut_exists))
    return states
