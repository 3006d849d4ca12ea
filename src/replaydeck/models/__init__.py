"""ReplayDeck data models."""

from replaydeck.models.config import (
    Config,
    EditorConfig,
    ExportConfig,
    InputConfig,
    OutputConfig,
    QueueConfig,
    ServerConfig,
)
from replaydeck.models.enums import ArtifactKind, CommandName, SlotState
from replaydeck.models.export import ExportClip
from replaydeck.models.input_file import InputFile
from replaydeck.models.state import CommandRequest, PoolSnapshot
from replaydeck.models.transitions import (
    TRANSITION_IDS,
    TRANSITIONS,
    TransitionCycle,
    TransitionDescriptor,
    get_transition,
)

__all__ = [
    "TRANSITIONS",
    "TRANSITION_IDS",
    "ArtifactKind",
    "CommandName",
    "CommandRequest",
    "Config",
    "EditorConfig",
    "ExportClip",
    "ExportConfig",
    "InputConfig",
    "InputFile",
    "OutputConfig",
    "PoolSnapshot",
    "QueueConfig",
    "ServerConfig",
    "SlotState",
    "TransitionCycle",
    "TransitionDescriptor",
    "get_transition",
]
