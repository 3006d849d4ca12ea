"""Single-writer execution lane for every pool-mutating operation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _LaneItem:
    label: str
    job: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]


class SerialLane:
    """FIFO queue drained by exactly one worker task.

    Callers submit coroutine factories and await their result; jobs run one at
    a time in submission order, so no two pool mutations ever interleave.
    """

    def __init__(self, name: str = "pool") -> None:
        self._name = name
        self._queue: asyncio.Queue[_LaneItem | None] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._started = False
        self._closing = False

    async def start(self) -> None:
        """Start the worker task."""
        if self._task is not None:
            logger.warning("SerialLane %s already started", self._name)
            return
        self._started = True
        self._closing = False
        self._task = asyncio.create_task(self._run())
        logger.info("SerialLane %s started", self._name)

    def is_running(self) -> bool:
        if self._task is None:
            return False
        return not self._task.done()

    @property
    def pending(self) -> int:
        """Number of queued jobs not yet picked up by the worker."""
        return self._queue.qsize()

    async def submit(self, job: Callable[[], Awaitable[T]], *, label: str = "job") -> T:
        """Queue a job and wait for its result.

        Exceptions raised by the job propagate to the caller.

        Raises:
            RuntimeError: If the lane is not running or shutting down
        """
        if self._closing or not self.is_running():
            raise RuntimeError(f"SerialLane {self._name} is not running")
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        await self._queue.put(_LaneItem(label=label, job=job, future=future))
        logger.debug("Queued %s on lane %s (pending=%d)", label, self._name, self.pending)
        return await future

    async def shutdown(self, timeout: float | None = None) -> None:
        """Stop accepting jobs, let queued jobs finish, then stop the worker."""
        task = self._task
        if task is None:
            return
        self._closing = True
        await self._queue.put(None)
        try:
            await asyncio.wait_for(task, timeout=timeout or 30.0)
        except asyncio.TimeoutError:
            logger.warning("SerialLane %s shutdown timed out, cancelling worker", self._name)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("SerialLane %s stopped", self._name)

    async def _run(self) -> None:
        while True:
            item = await self._queue.get()
            if item is None:
                self._fail_pending()
                return
            if item.future.cancelled():
                continue
            try:
                result = await item.job()
            except asyncio.CancelledError:
                item.future.cancel()
                raise
            except Exception as exc:
                logger.debug("Lane job %s failed: %s", item.label, exc)
                if not item.future.done():
                    item.future.set_exception(exc)
            else:
                if not item.future.done():
                    item.future.set_result(result)

    def _fail_pending(self) -> None:
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not None and not item.future.done():
                item.future.set_exception(RuntimeError(f"SerialLane {self._name} stopped"))
