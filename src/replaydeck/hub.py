"""Fan-out of full pool snapshots to connected control clients."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from replaydeck.models.state import PoolSnapshot

logger = logging.getLogger(__name__)


class ControlConnection(Protocol):
    async def send_json(self, data: Any) -> None: ...


class BroadcastHub:
    """Tracks live control connections and pushes the current view to them.

    The client map may change while a broadcast is running: every push
    iterates over a copy, and failing connections are dropped, never retried.
    """

    def __init__(self, snapshot_fn: Callable[[], PoolSnapshot]) -> None:
        self._snapshot_fn = snapshot_fn
        self._clients: dict[str, ControlConnection] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._flush_task: asyncio.Task[None] | None = None
        self._dirty = False

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Set event loop used when `notify` is called from worker threads."""
        self._loop = loop

    @property
    def client_ids(self) -> list[str]:
        return list(self._clients)

    def message(self) -> dict[str, Any]:
        """Current view as a push message."""
        return {"type": "state", **self._snapshot_fn().to_message()}

    async def connect(self, client_id: str, connection: ControlConnection) -> None:
        """Register a client and push the current view to it."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._clients[client_id] = connection
        logger.info("Control client connected: remote=%s clients=%d", client_id, len(self._clients))
        await self._send(client_id, connection, self.message())

    def disconnect(self, client_id: str) -> None:
        if self._clients.pop(client_id, None) is not None:
            logger.info(
                "Control client disconnected: remote=%s clients=%d",
                client_id,
                len(self._clients),
            )

    async def broadcast(self) -> None:
        """Push the current view to every connected client."""
        clients = list(self._clients.items())
        if not clients:
            return
        message = self.message()
        await asyncio.gather(
            *(self._send(client_id, connection, message) for client_id, connection in clients)
        )

    def notify(self) -> None:
        """Schedule a broadcast of the latest view.

        Thread-safe. Bursts of notifications collapse into as few pushes as
        possible, and the last push always carries the latest view.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            self._schedule_flush()
            return

        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._schedule_flush)
            return

        logger.debug("Broadcast skipped: no event loop available")

    async def flush(self) -> None:
        """Wait for any scheduled broadcast to complete."""
        while self._flush_task is not None and not self._flush_task.done():
            await asyncio.shield(self._flush_task)

    async def shutdown(self, timeout: float | None = None) -> None:
        _ = timeout
        task = self._flush_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._flush_task = None
        self._clients.clear()

    def _schedule_flush(self) -> None:
        self._dirty = True
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.get_running_loop().create_task(self._flush_loop())

    async def _flush_loop(self) -> None:
        while self._dirty:
            self._dirty = False
            await self.broadcast()

    async def _send(
        self,
        client_id: str,
        connection: ControlConnection,
        message: dict[str, Any],
    ) -> None:
        try:
            await connection.send_json(message)
        except Exception as exc:
            logger.warning("Dropping control client after failed push: remote=%s error=%s", client_id, exc)
            if self._clients.get(client_id) is connection:
                del self._clients[client_id]
