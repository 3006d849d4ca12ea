"""Operator command execution against the slot pool."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from replaydeck.commands.validation import Command
from replaydeck.errors import ExternalToolError, NoCutReplaysError, SlotNotUsedError
from replaydeck.models.enums import ArtifactKind, CommandName
from replaydeck.models.export import ExportClip
from replaydeck.models.state import PoolSnapshot
from replaydeck.models.transitions import TransitionCycle, TransitionDescriptor

if TYPE_CHECKING:
    from replaydeck.interfaces import EditorLauncher, VideoAssembler
    from replaydeck.pool.manager import SlotPool
    from replaydeck.runtime.lane import SerialLane

logger = logging.getLogger(__name__)


class CommandOrchestrator:
    """Runs EDIT, CLEAR, TRANSITION, EXPORT and PREVIEW.

    Every command executes as one job on the shared pool lane, so commands
    never interleave with each other or with ingestion. External tool failures
    are logged and swallowed; precondition failures raise `CommandError`.
    """

    def __init__(
        self,
        pool: SlotPool,
        lane: SerialLane,
        *,
        editor: EditorLauncher,
        assembler: VideoAssembler,
        transitions: TransitionCycle,
        output_path: Path,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._pool = pool
        self._lane = lane
        self._editor = editor
        self._assembler = assembler
        self._transitions = transitions
        self._output_path = output_path
        self._on_change = on_change
        self._progress = False

    def set_change_listener(self, on_change: Callable[[], None] | None) -> None:
        self._on_change = on_change

    @property
    def progress(self) -> bool:
        return self._progress

    @property
    def transition(self) -> TransitionDescriptor:
        return self._transitions.current

    def snapshot(self) -> PoolSnapshot:
        """Full current view for control clients."""
        return PoolSnapshot(
            slots=list(self._pool.states),
            progress=self._progress,
            transition=self._transitions.current.id,
        )

    async def execute(self, command: Command) -> None:
        """Run a validated command to completion on the pool lane."""
        job: Callable[[], Awaitable[None]]
        match command.name:
            case CommandName.EDIT:
                job = partial(self._edit, command.slot)
            case CommandName.CLEAR:
                job = partial(self._clear, command.slot)
            case CommandName.TRANSITION:
                job = self._transition
            case CommandName.EXPORT:
                job = self._export
            case CommandName.PREVIEW:
                job = self._preview
            case _:
                raise ValueError(f"Unhandled command: {command.name}")
        label = f"{command.name} {command.slot}" if command.name.targets_slot else str(command.name)
        await self._lane.submit(job, label=label)

    async def edit(self, slot: int) -> None:
        await self.execute(Command(CommandName.EDIT, slot))

    async def clear(self, slot: int) -> None:
        await self.execute(Command(CommandName.CLEAR, slot))

    async def cycle_transition(self) -> None:
        await self.execute(Command(CommandName.TRANSITION))

    async def export(self) -> None:
        await self.execute(Command(CommandName.EXPORT))

    async def preview(self) -> None:
        await self.execute(Command(CommandName.PREVIEW))

    async def _edit(self, slot: int) -> None:
        logger.info("Command EDIT: edit slot #%d", slot, extra={"slot": slot})
        self._pool.check_range(slot)
        if not await asyncio.to_thread(self._pool.is_used, slot):
            logger.error("Command EDIT: cannot edit slot #%d: not used", slot, extra={"slot": slot})
            raise SlotNotUsedError(slot)

        media = self._pool.naming.path(slot, ArtifactKind.ORIGINAL)
        try:
            async with self._in_progress():
                try:
                    await self._editor.open(media)
                except ExternalToolError as exc:
                    logger.error("Command EDIT: %s", exc, extra={"slot": slot})
        finally:
            await asyncio.to_thread(self._pool.refresh_state)

    async def _clear(self, slot: int) -> None:
        logger.info("Command CLEAR: remove slot #%d", slot, extra={"slot": slot})
        await asyncio.to_thread(self._pool.clear, slot)
        await asyncio.to_thread(self._pool.compact)

    async def _transition(self) -> None:
        previous = self._transitions.current.id
        current = self._transitions.advance()
        logger.info("Command TRANSITION: cycle transitions from %s to %s", previous, current.id)
        self._notify()

    async def _export(self) -> None:
        await asyncio.to_thread(self._pool.compact)
        await asyncio.to_thread(self._pool.refresh_state)

        slots = self._pool.cut_slots()
        if not slots:
            logger.error("Command EXPORT: no cut replays available")
            raise NoCutReplaysError()

        clips = [ExportClip.for_slot(self._pool.naming, slot) for slot in slots]
        transition = self._transitions.current
        logger.info(
            "Command EXPORT: assembling slots %s with transition %s into %s",
            slots,
            transition.id,
            self._output_path,
        )
        try:
            async with self._in_progress():
                try:
                    await self._assembler.assemble(clips, transition, self._output_path)
                except ExternalToolError as exc:
                    logger.error("Command EXPORT: %s", exc)
                else:
                    logger.info("Command EXPORT: finished %s", self._output_path)
        finally:
            await asyncio.to_thread(self._pool.refresh_state)

    async def _preview(self) -> None:
        logger.info("Command PREVIEW: open exported video %s", self._output_path)
        async with self._in_progress():
            try:
                await self._editor.open(self._output_path)
            except ExternalToolError as exc:
                logger.error("Command PREVIEW: %s", exc)

    @asynccontextmanager
    async def _in_progress(self) -> AsyncIterator[None]:
        """Hold the progress flag while an external tool runs."""
        self._set_progress(True)
        try:
            yield
        finally:
            self._set_progress(False)

    def _set_progress(self, value: bool) -> None:
        self._progress = value
        self._notify()

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception as exc:
            logger.error("Orchestrator change listener failed: %s", exc, exc_info=True)

