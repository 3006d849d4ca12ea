"""Fixed-capacity slot pool backed by artifact files in the queue directory."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from replaydeck.errors import PoolFullError, SlotAlreadyClearError, SlotOutOfRangeError
from replaydeck.models.enums import ArtifactKind, SlotState
from replaydeck.pool.naming import SlotNaming
from replaydeck.pool.state import scan_states

logger = logging.getLogger(__name__)


class SlotPool:
    """Owns the slot-state array and the filesystem effects that change it.

    All methods are blocking filesystem code and are not safe to call
    concurrently; the application routes every call through a single
    `SerialLane`. After every completed clear+compact, used slots form a
    dense prefix 1..k.
    """

    def __init__(
        self,
        queue_dir: Path,
        capacity: int,
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"Pool capacity must be >= 1, got {capacity}")
        self.naming = SlotNaming(Path(queue_dir))
        self.capacity = capacity
        self._on_change = on_change
        self._states: list[SlotState] = [SlotState.CLEAR] * capacity

        self.naming.queue_dir.mkdir(parents=True, exist_ok=True)

    def set_change_listener(self, on_change: Callable[[], None] | None) -> None:
        """Register the callback invoked after every state mutation."""
        self._on_change = on_change

    @property
    def states(self) -> tuple[SlotState, ...]:
        """Snapshot of slot states, index 0 is slot #1."""
        return tuple(self._states)

    @property
    def used_count(self) -> int:
        return sum(1 for state in self._states if state != SlotState.CLEAR)

    def state_of(self, slot: int) -> SlotState:
        self.check_range(slot)
        return self._states[slot - 1]

    def check_range(self, slot: int) -> None:
        if not 1 <= slot <= self.capacity:
            raise SlotOutOfRangeError(slot, self.capacity)

    def is_used(self, slot: int) -> bool:
        """True if the slot's original artifact exists on disk."""
        return self.naming.path(slot, ArtifactKind.ORIGINAL).exists()

    def cut_slots(self) -> list[int]:
        """Slots whose cut artifact exists, in ascending order."""
        return [
            slot
            for slot in range(1, self.capacity + 1)
            if self._states[slot - 1] == SlotState.CUT
        ]

    def refresh_state(self) -> tuple[SlotState, ...]:
        """Re-derive every slot state from disk. Idempotent."""
        self._states = scan_states(self.naming, self.capacity)
        logger.info("Slot states refreshed from disk: used=%d/%d", self.used_count, self.capacity)
        self._notify()
        return self.states

    def allocate_free(self) -> int:
        """Return the first slot without an original artifact.

        Does not mark the slot as used; `ingest()` completes the allocation.

        Raises:
            PoolFullError: If every slot is used
        """
        for slot in range(1, self.capacity + 1):
            if not self.is_used(slot):
                return slot
        raise PoolFullError(self.capacity)

    def ingest(self, source: Path) -> int:
        """Move a new input file into the first free slot as its original.

        Raises:
            PoolFullError: If every slot is used (source is left untouched)
        """
        slot = self.allocate_free()
        target = self.naming.path(slot, ArtifactKind.ORIGINAL)
        logger.info(
            "Taking over input file %s into slot #%d",
            source.name,
            slot,
            extra={"slot": slot},
        )
        shutil.move(str(source), str(target))
        self._states[slot - 1] = SlotState.UNCUT
        self._notify()
        return slot

    def clear(self, slot: int) -> None:
        """Delete every artifact of a slot and mark it CLEAR.

        Raises:
            SlotOutOfRangeError: If slot is outside 1..N
            SlotAlreadyClearError: If the slot holds nothing
        """
        self.check_range(slot)
        if self._states[slot - 1] == SlotState.CLEAR and not self.is_used(slot):
            raise SlotAlreadyClearError(slot)

        logger.info("Removing content of slot #%d", slot, extra={"slot": slot})
        for kind, path in self.naming.artifacts(slot):
            if path.exists():
                path.unlink()
                logger.debug("Removed %s artifact: %s", kind, path.name, extra={"slot": slot})
        self._states[slot - 1] = SlotState.CLEAR
        self._notify()

    def move(self, src: int, dst: int) -> None:
        """Relocate every artifact of `src` to `dst`; `dst` must be CLEAR."""
        self.check_range(src)
        self.check_range(dst)
        logger.info("Moving content from slot #%d to #%d", src, dst, extra={"slot": src})
        for kind, src_path in self.naming.artifacts(src):
            if src_path.exists():
                src_path.rename(self.naming.path(dst, kind))
        self._states[dst - 1] = self._states[src - 1]
        self._states[src - 1] = SlotState.CLEAR
        self._notify()

    def compact(self) -> list[tuple[int, int]]:
        """Close gaps so used slots form a dense prefix, preserving order.

        Returns:
            The (src, dst) moves performed, in order
        """
        moves: list[tuple[int, int]] = []
        slot = 1
        while slot <= self.capacity:
            if self.is_used(slot):
                slot += 1
                continue
            nxt = self._next_used(slot + 1)
            if nxt is None:
                break
            self.move(nxt, slot)
            moves.append((nxt, slot))
            slot += 1
        if moves:
            logger.info("Compacted slot pool: moves=%s", moves)
        return moves

    def _next_used(self, start: int) -> int | None:
        for slot in range(start, self.capacity + 1):
            if self.is_used(slot):
                return slot
        return None

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception as exc:
            logger.error("Slot pool change listener failed: %s", exc, exc_info=True)
