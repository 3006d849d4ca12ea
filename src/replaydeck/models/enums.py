"""Centralized enums for slot states, artifact kinds and commands."""

from enum import IntEnum, StrEnum


class SlotState(IntEnum):
    """Logical slot state derived from artifact presence.

    Integer values are part of the push protocol (0=CLEAR, 1=UNCUT, 2=CUT).
    """

    CLEAR = 0
    UNCUT = 1
    CUT = 2

    def __str__(self) -> str:
        return self.name.lower()


class ArtifactKind(StrEnum):
    """Stages of a slot's content, each backed by its own file."""

    ORIGINAL = "original"
    CUT = "cut"
    AUDIO_FADED = "audio-faded"
    OVERLAYED = "overlayed"
    EDIT_PROJECT = "edit-project"


class CommandName(StrEnum):
    """Operator commands accepted on the control channel."""

    EDIT = "EDIT"
    CLEAR = "CLEAR"
    TRANSITION = "TRANSITION"
    EXPORT = "EXPORT"
    PREVIEW = "PREVIEW"

    @property
    def targets_slot(self) -> bool:
        """True for commands that operate on a single slot."""
        return self in (CommandName.EDIT, CommandName.CLEAR)
