"""Interface definitions for ReplayDeck external collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from replaydeck.models.export import ExportClip
    from replaydeck.models.input_file import InputFile
    from replaydeck.models.transitions import TransitionDescriptor


class Shutdownable(ABC):
    """Async shutdown interface for managed components."""

    @abstractmethod
    async def shutdown(self, timeout: float | None = None) -> None:
        """Release resources and stop background work."""
        raise NotImplementedError


class InputSource(Shutdownable, ABC):
    """Watches the input directory and reports files once they are stable."""

    @abstractmethod
    def register_callback(self, callback: Callable[[InputFile], None]) -> None:
        """Register callback to be invoked for every new stable file."""
        raise NotImplementedError

    @abstractmethod
    async def start(self) -> None:
        """Start watching (runs in background)."""
        raise NotImplementedError

    @abstractmethod
    def is_healthy(self) -> bool:
        """Return False if the watcher failed and no longer reports files."""
        raise NotImplementedError

    @abstractmethod
    def last_heartbeat(self) -> float:
        """Return timestamp (monotonic) of the last completed directory scan."""
        raise NotImplementedError


class EditorLauncher(ABC):
    """Opens a media file in the interactive external editor."""

    @abstractmethod
    async def open(self, media_path: Path) -> None:
        """Run the editor on a file and return once it has exited.

        Raises:
            ExternalToolError: If the editor cannot be started or fails
        """
        raise NotImplementedError


class VideoAssembler(ABC):
    """Assembles an ordered list of clips into one output file."""

    @abstractmethod
    async def assemble(
        self,
        clips: Sequence[ExportClip],
        transition: TransitionDescriptor,
        output_path: Path,
    ) -> None:
        """Render the clips, in the given order, into `output_path`.

        Raises:
            ExternalToolError: If any rendering stage fails
        """
        raise NotImplementedError
