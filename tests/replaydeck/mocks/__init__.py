"""Mock implementations for testing."""

from tests.replaydeck.mocks.assembler import MockAssembler
from tests.replaydeck.mocks.connection import MockConnection
from tests.replaydeck.mocks.editor import MockEditor
from tests.replaydeck.mocks.source import MockInputSource

__all__ = [
    "MockAssembler",
    "MockConnection",
    "MockEditor",
    "MockInputSource",
]
