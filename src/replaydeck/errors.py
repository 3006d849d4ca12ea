"""Error hierarchy for ReplayDeck pool, command and tool failures."""

from __future__ import annotations


class ReplayDeckError(Exception):
    """Base exception for all ReplayDeck errors."""


class PoolError(ReplayDeckError):
    """Slot pool operation failed."""

    def __init__(self, message: str, slot: int | None = None) -> None:
        super().__init__(message)
        self.slot = slot


class PoolFullError(PoolError):
    """No free slot is left in the pool."""

    def __init__(self, capacity: int) -> None:
        super().__init__(f"No free slot available (all {capacity} slots used)")
        self.capacity = capacity


class SlotOutOfRangeError(PoolError):
    """Slot index is outside of 1..N."""

    def __init__(self, slot: int, capacity: int) -> None:
        super().__init__(f"Slot #{slot} out of range 1..{capacity}", slot=slot)
        self.capacity = capacity


class SlotAlreadyClearError(PoolError):
    """Clear requested on a slot that holds nothing."""

    def __init__(self, slot: int) -> None:
        super().__init__(f"Nothing to clear: slot #{slot} is already clear", slot=slot)


class CommandError(ReplayDeckError):
    """Operator command was rejected."""


class CommandValidationError(CommandError):
    """Command message is malformed or names an unknown command/slot combination."""


class SlotNotUsedError(CommandError):
    """Command targets a slot that has no content."""

    def __init__(self, slot: int) -> None:
        super().__init__(f"Cannot edit slot #{slot}: slot is not used")
        self.slot = slot


class NoCutReplaysError(CommandError):
    """Export requested while no slot holds a cut replay."""

    def __init__(self) -> None:
        super().__init__("No cut replays available")


class ExternalToolError(ReplayDeckError):
    """External editor or assembler invocation failed."""

    def __init__(self, tool: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(f"{tool}: {message}")
        self.tool = tool
        self.cause = cause
        self.__cause__ = cause
