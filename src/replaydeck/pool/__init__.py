"""Slot pool: naming, state derivation and filesystem mutations."""

from replaydeck.pool.manager import SlotPool
from replaydeck.pool.naming import SlotNaming, artifact_filename, path_for
from replaydeck.pool.state import derive_state, scan_states

__all__ = [
    "SlotNaming",
    "SlotPool",
    "artifact_filename",
    "derive_state",
    "path_for",
    "scan_states",
]
