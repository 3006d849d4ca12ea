"""ReplayDeck replay slot pool and export controller."""

__version__ = "0.1.0"

# Export commonly used types
from replaydeck.errors import CommandError, PoolError, ReplayDeckError
from replaydeck.models.enums import CommandName, SlotState
from replaydeck.models.state import PoolSnapshot

__all__ = [
    "CommandError",
    "CommandName",
    "PoolError",
    "PoolSnapshot",
    "ReplayDeckError",
    "SlotState",
    "__version__",
]
