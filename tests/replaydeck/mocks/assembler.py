"""Mock video assembler for testing."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from replaydeck.errors import ExternalToolError
from replaydeck.interfaces import VideoAssembler
from replaydeck.models.export import ExportClip
from replaydeck.models.transitions import TransitionDescriptor


class MockAssembler(VideoAssembler):
    """Records assemble calls and optionally writes the output file."""

    def __init__(self, simulate_failure: bool = False, write_output: bool = True) -> None:
        self.simulate_failure = simulate_failure
        self.write_output = write_output
        self.calls: list[tuple[list[ExportClip], TransitionDescriptor, Path]] = []

    async def assemble(
        self,
        clips: Sequence[ExportClip],
        transition: TransitionDescriptor,
        output_path: Path,
    ) -> None:
        self.calls.append((list(clips), transition, output_path))

        if self.simulate_failure:
            raise ExternalToolError("assembler", "simulated concat failure")

        if self.write_output:
            output_path.write_bytes(b"exported")
