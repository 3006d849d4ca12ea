"""Ordered intake of new input files into the slot pool."""

from __future__ import annotations

import asyncio
import logging
import re
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from replaydeck.errors import PoolFullError
from replaydeck.models.input_file import InputFile

if TYPE_CHECKING:
    from replaydeck.pool.manager import SlotPool
    from replaydeck.runtime.lane import SerialLane

logger = logging.getLogger(__name__)


class FilenameMatcher(Protocol):
    def matches(self, filename: str) -> bool: ...


class RegexFilenameMatcher:
    """Accepts file names containing a match of the pattern anywhere."""

    def __init__(self, pattern: str) -> None:
        self.pattern = re.compile(pattern)

    def matches(self, filename: str) -> bool:
        return self.pattern.search(filename) is not None


class IngestionSerializer:
    """Assigns slots to new input files strictly in arrival order.

    Events are queued by `on_new_file` (safe to call from any thread) and
    drained by one task; each assignment runs on the shared pool lane.
    """

    def __init__(
        self,
        pool: SlotPool,
        lane: SerialLane,
        matcher: FilenameMatcher,
        *,
        output_path: Path | None = None,
    ) -> None:
        self._pool = pool
        self._lane = lane
        self._matcher = matcher
        self._output_path = output_path.resolve() if output_path is not None else None
        self._queue: asyncio.Queue[InputFile | None] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

        self.ingested: int = 0
        self.rejected: int = 0

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Set event loop used for callbacks coming from foreign threads."""
        self._loop = loop

    async def start(self) -> None:
        if self._task is not None:
            logger.warning("IngestionSerializer already started")
            return
        self._loop = asyncio.get_running_loop()
        self._task = asyncio.create_task(self._run())

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_new_file(self, event: InputFile) -> None:
        """Callback for the input source when a stable file appeared.

        Thread-safe: uses the stored event loop when called outside of it.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            self._queue.put_nowait(event)
            return

        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
            return

        logger.error(
            "Cannot ingest %s: no event loop available. "
            "Call set_event_loop() before registering with the input source.",
            event.name,
        )

    async def join(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def shutdown(self, timeout: float | None = None) -> None:
        task = self._task
        if task is None:
            return
        await self._queue.put(None)
        try:
            await asyncio.wait_for(task, timeout=timeout or 10.0)
        except asyncio.TimeoutError:
            logger.warning("IngestionSerializer shutdown timed out, cancelling task")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                if event is None:
                    return
                await self._handle(event)
            except Exception as exc:
                logger.error("Ingestion of %s failed: %s", event, exc, exc_info=True)
            finally:
                self._queue.task_done()

    async def _handle(self, event: InputFile) -> None:
        if not self._matcher.matches(event.name):
            logger.debug("Ignoring input file not matching pattern: %s", event.name)
            return
        if self._is_own_file(event.path):
            logger.debug("Ignoring own queue or output file: %s", event.name)
            return

        try:
            slot = await self._lane.submit(
                partial(asyncio.to_thread, self._pool.ingest, event.path),
                label=f"ingest {event.name}",
            )
        except PoolFullError as exc:
            self.rejected += 1
            logger.error(
                "Cannot take over input file %s: %s; leaving it in place",
                event.name,
                exc,
            )
            return

        self.ingested += 1
        logger.info("Input file %s assigned to slot #%d", event.name, slot, extra={"slot": slot})

    def _is_own_file(self, path: Path) -> bool:
        if self._pool.naming.owns(path):
            return True
        return self._output_path is not None and path.resolve() == self._output_path
