"""Input folder watcher reporting files once they stopped growing."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from anyio import Path as AsyncPath

from replaydeck.interfaces import InputSource
from replaydeck.models.config import InputConfig
from replaydeck.models.input_file import InputFile

logger = logging.getLogger(__name__)


@dataclass
class _Candidate:
    size: int
    mtime: float
    stable_since: float


class InputFolderSource(InputSource):
    """Polls a directory and emits each new file once it is stable.

    A file is stable when its size and mtime did not change for
    `stability_threshold_s`. Files already present at start are reported
    too. A file is reported again only after it disappeared and reappeared.
    Uses anyio for non-blocking directory scans.
    """

    def __init__(self, config: InputConfig) -> None:
        self.watch_dir = Path(config.dir)
        self.poll_interval = float(config.poll_interval_s)
        self.stability_threshold_s = float(config.stability_threshold_s)

        self._callback: Callable[[InputFile], None] | None = None
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._last_heartbeat = time.monotonic()
        self._candidates: dict[Path, _Candidate] = {}
        self._reported: set[Path] = set()

        logger.info(
            "InputFolderSource initialized: watch_dir=%s, stability_threshold_s=%.2f",
            self.watch_dir,
            self.stability_threshold_s,
        )

    def register_callback(self, callback: Callable[[InputFile], None]) -> None:
        self._callback = callback

    async def start(self) -> None:
        """Start the watch loop in a background task.

        Raises:
            FileNotFoundError: If the watch directory does not exist
        """
        if self._task is not None:
            logger.warning("InputFolderSource already started")
            return
        if not self.watch_dir.is_dir():
            raise FileNotFoundError(f"Input directory does not exist: {self.watch_dir}")

        logger.info("Starting InputFolderSource: %s", self.watch_dir)
        self._stop_event.clear()
        self._task = asyncio.create_task(self._watch())

    async def shutdown(self, timeout: float | None = None) -> None:
        task = self._task
        if task is None:
            return

        logger.info("Stopping InputFolderSource...")
        self._stop_event.set()
        try:
            await asyncio.wait_for(task, timeout=timeout or 5.0)
        except asyncio.TimeoutError:
            logger.warning("InputFolderSource shutdown timed out, cancelling task")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("InputFolderSource stopped")

    def is_healthy(self) -> bool:
        """True while the watch directory exists and the watch loop is alive."""
        if not self.watch_dir.is_dir():
            return False
        return self._task is not None and not self._task.done()

    def last_heartbeat(self) -> float:
        return self._last_heartbeat

    async def _watch(self) -> None:
        logger.info("Watch loop started")
        while not self._stop_event.is_set():
            try:
                await self.scan_once()
                self._last_heartbeat = time.monotonic()
            except Exception as e:
                logger.error("Error in watch loop: %s", e, exc_info=True)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Watch loop exited")

    async def scan_once(self, now: float | None = None) -> list[InputFile]:
        """Scan the directory once and emit files that became stable.

        Returns:
            The files emitted by this scan
        """
        now = time.monotonic() if now is None else now
        present: set[Path] = set()
        emitted: list[InputFile] = []

        async for entry in AsyncPath(self.watch_dir).iterdir():
            path = Path(entry)
            try:
                if not await entry.is_file():
                    continue
                stat_info = await entry.stat()
            except OSError as e:
                logger.debug("Failed to stat %s: %s", path, e)
                continue

            present.add(path)
            if path in self._reported:
                continue

            candidate = self._candidates.get(path)
            if (
                candidate is None
                or candidate.size != stat_info.st_size
                or candidate.mtime != stat_info.st_mtime
            ):
                self._candidates[path] = _Candidate(
                    size=stat_info.st_size,
                    mtime=stat_info.st_mtime,
                    stable_since=now,
                )
                logger.debug("Waiting for %s to stabilize (size=%d)", path.name, stat_info.st_size)
                continue

            if now - candidate.stable_since < self.stability_threshold_s:
                continue

            del self._candidates[path]
            self._reported.add(path)
            event = InputFile(
                path=path,
                size_bytes=stat_info.st_size,
                modified_at=datetime.fromtimestamp(stat_info.st_mtime),
            )
            logger.info("New stable input file: %s", path.name)
            emitted.append(event)
            self._emit_file(event)

        self._reported &= present
        for gone in set(self._candidates) - present:
            del self._candidates[gone]
        return emitted

    def _emit_file(self, event: InputFile) -> None:
        if self._callback is None:
            return
        try:
            self._callback(event)
        except Exception as exc:
            logger.error("Callback failed for %s: %s", event.name, exc, exc_info=True)
