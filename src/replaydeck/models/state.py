"""Wire models for the control protocol."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr

from replaydeck.models.enums import SlotState


class PoolSnapshot(BaseModel):
    """Full view pushed to every control client."""

    slots: list[SlotState]
    progress: bool
    transition: str

    def to_message(self) -> dict[str, object]:
        """Serialize with slot states as plain integers."""
        return {
            "slots": [int(state) for state in self.slots],
            "progress": self.progress,
            "transition": self.transition,
        }


class CommandRequest(BaseModel):
    """Inbound command message `{cmd, slot}`.

    Only the shape is checked here; command names and slot bounds are
    validated against the pool by `replaydeck.commands.validation`.
    """

    model_config = ConfigDict(extra="ignore")

    cmd: StrictStr
    slot: StrictInt
