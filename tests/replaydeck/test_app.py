"""Tests for Application wiring and lifecycle."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from replaydeck.app import Application
from replaydeck.config import load_config_from_dict
from replaydeck.models.enums import SlotState
from replaydeck.models.input_file import InputFile
from tests.replaydeck.mocks import (
    MockAssembler,
    MockConnection,
    MockEditor,
    MockInputSource,
)


def _application(
    tmp_path: Path,
    queue_dir: Path,
    input_dir: Path,
    *,
    slots: int = 3,
    source: MockInputSource | None = None,
    editor: MockEditor | None = None,
) -> Application:
    config = load_config_from_dict(
        {
            "input": {"dir": str(input_dir)},
            "queue": {"dir": str(queue_dir), "slots": slots},
            "output": {"path": str(tmp_path / "replay.mp4")},
        }
    )
    return Application(
        config,
        editor=editor or MockEditor(),
        assembler=MockAssembler(),
        source=source or MockInputSource(),
        serve_api=False,
    )


def _input_file(path: Path, data: bytes = b"replay") -> InputFile:
    path.write_bytes(data)
    return InputFile(path=path, size_bytes=len(data), modified_at=datetime.now())


@pytest.mark.asyncio
async def test_start_reads_existing_queue_and_shutdown_stops_components(
    tmp_path: Path,
    queue_dir: Path,
    input_dir: Path,
    put_artifact: Callable[..., Path],
) -> None:
    # Given: Slot 2 already holds a replay from a previous run
    put_artifact(2)
    source = MockInputSource()
    application = _application(tmp_path, queue_dir, input_dir, source=source)

    # When: Starting the application
    await application.start()
    try:
        states = application.pool.states
        running = application.lane.is_running() and application.ingestion.is_running()
    finally:
        await application.shutdown()

    # Then: Disk state was loaded and everything ran until shutdown
    assert states == (SlotState.CLEAR, SlotState.UNCUT, SlotState.CLEAR)
    assert running is True
    assert source.shutdown_called is True
    assert application.lane.is_running() is False


@pytest.mark.asyncio
async def test_new_input_files_fill_slots_and_reach_clients(
    tmp_path: Path, queue_dir: Path, input_dir: Path
) -> None:
    # Given: A started application with one connected client
    source = MockInputSource()
    application = _application(tmp_path, queue_dir, input_dir, source=source)
    await application.start()
    connection = MockConnection()
    try:
        await application.hub.connect("client-1", connection)

        # When: Two replay files become stable
        source.emit(_input_file(input_dir / "replay-a.mp4", b"A"))
        source.emit(_input_file(input_dir / "replay-b.mp4", b"B"))
        await application.ingestion.join()
        await application.hub.flush()
    finally:
        await application.shutdown()

    # Then: They took slots 1 and 2 in arrival order and the client saw it
    naming = application.pool.naming
    assert naming.path(1).read_bytes() == b"A"
    assert naming.path(2).read_bytes() == b"B"
    assert list(input_dir.iterdir()) == []
    assert connection.states[-1]["slots"] == [1, 1, 0]


@pytest.mark.asyncio
async def test_non_matching_and_overflow_files_stay_in_place(
    tmp_path: Path, queue_dir: Path, input_dir: Path
) -> None:
    # Given: A one-slot application
    source = MockInputSource()
    application = _application(tmp_path, queue_dir, input_dir, slots=1, source=source)
    await application.start()
    try:
        # When: A non-matching file and two replays arrive
        notes = input_dir / "notes.txt"
        source.emit(_input_file(notes))
        source.emit(_input_file(input_dir / "replay-1.mp4"))
        overflow = input_dir / "replay-2.mp4"
        source.emit(_input_file(overflow))
        await application.ingestion.join()
    finally:
        await application.shutdown()

    # Then: Only the first replay was taken over
    assert notes.exists()
    assert overflow.exists()
    assert application.ingestion.ingested == 1
    assert application.ingestion.rejected == 1


@pytest.mark.asyncio
async def test_source_start_failure_stops_started_components(
    tmp_path: Path, queue_dir: Path, input_dir: Path
) -> None:
    # Given: An input source that cannot start
    application = _application(
        tmp_path,
        queue_dir,
        input_dir,
        source=MockInputSource(simulate_start_failure=True),
    )

    # When/Then: Startup fails with the source's error
    with pytest.raises(FileNotFoundError):
        await application.start()

    # Then: The lane was stopped again
    assert application.lane.is_running() is False
    assert application.ingestion.is_running() is False


@pytest.mark.asyncio
async def test_ingestion_and_commands_wait_for_running_edit(
    tmp_path: Path,
    queue_dir: Path,
    input_dir: Path,
    put_artifact: Callable[..., Path],
) -> None:
    """An open edit session holds back new files and later commands."""
    # Given: Slot 1 used and an editor that stays open until released
    put_artifact(1, data=b"first")
    release = asyncio.Event()
    editor = MockEditor(release=release)
    source = MockInputSource()
    application = _application(tmp_path, queue_dir, input_dir, source=source, editor=editor)
    await application.start()
    try:
        edit_task = asyncio.create_task(application.orchestrator.edit(1))
        async with asyncio.timeout(2.0):
            while not editor.opened:
                await asyncio.sleep(0.01)

        # When: A new replay and a CLEAR of slot 1 arrive during the edit
        incoming = input_dir / "replay-new.mp4"
        source.emit(_input_file(incoming, b"new"))
        await asyncio.sleep(0.05)
        clear_task = asyncio.create_task(application.orchestrator.clear(1))
        await asyncio.sleep(0.05)

        # Then: Neither ran while the editor was open
        assert incoming.exists()
        assert application.pool.state_of(2) == SlotState.CLEAR
        assert application.pool.naming.path(1).read_bytes() == b"first"
        assert application.orchestrator.progress is True

        # When: The editor closes
        release.set()
        await edit_task
        await application.ingestion.join()
        await clear_task
    finally:
        await application.shutdown()

    # Then: The replay was taken over, then slot 1 cleared and the pool compacted
    assert not incoming.exists()
    assert application.pool.naming.path(1).read_bytes() == b"new"
    assert application.pool.states == (SlotState.UNCUT, SlotState.CLEAR, SlotState.CLEAR)
