"""Tests for SerialLane ordering and lifecycle."""

from __future__ import annotations

import asyncio

import pytest

from replaydeck.runtime.lane import SerialLane


@pytest.mark.asyncio
async def test_jobs_run_one_at_a_time_in_submission_order() -> None:
    """Interleaved submissions never overlap."""
    lane = SerialLane("test")
    await lane.start()
    events: list[str] = []
    active = 0
    max_active = 0

    async def _job(name: str, delay: float) -> str:
        nonlocal active, max_active
        active += 1
        max_active = max(max_active, active)
        events.append(f"start {name}")
        await asyncio.sleep(delay)
        events.append(f"end {name}")
        active -= 1
        return name

    # Given/When: Three jobs submitted concurrently, the first one slowest
    results = await asyncio.gather(
        lane.submit(lambda: _job("a", 0.03)),
        lane.submit(lambda: _job("b", 0.0)),
        lane.submit(lambda: _job("c", 0.01)),
    )

    # Then: They ran strictly in order and never concurrently
    assert results == ["a", "b", "c"]
    assert events == ["start a", "end a", "start b", "end b", "start c", "end c"]
    assert max_active == 1
    await lane.shutdown()


@pytest.mark.asyncio
async def test_job_exception_propagates_and_lane_continues() -> None:
    lane = SerialLane("test")
    await lane.start()

    async def _fail() -> None:
        raise ValueError("boom")

    async def _ok() -> int:
        return 42

    # Given/When: A failing job followed by a good one
    with pytest.raises(ValueError, match="boom"):
        await lane.submit(_fail)
    result = await lane.submit(_ok)

    # Then: The failure reached the caller and the lane kept working
    assert result == 42
    assert lane.is_running()
    await lane.shutdown()


@pytest.mark.asyncio
async def test_submit_after_shutdown_raises() -> None:
    lane = SerialLane("test")
    await lane.start()

    # Given: A stopped lane
    await lane.shutdown()

    async def _ok() -> None:
        return None

    # When/Then: New submissions are refused
    assert not lane.is_running()
    with pytest.raises(RuntimeError, match="not running"):
        await lane.submit(_ok)


@pytest.mark.asyncio
async def test_shutdown_drains_queued_jobs() -> None:
    """Jobs queued before shutdown still complete."""
    lane = SerialLane("test")
    await lane.start()
    done: list[int] = []

    async def _job(n: int) -> None:
        await asyncio.sleep(0.01)
        done.append(n)

    # Given: Two jobs queued
    pending = [asyncio.create_task(lane.submit(lambda n=n: _job(n))) for n in (1, 2)]
    await asyncio.sleep(0)

    # When: Shutting down
    await lane.shutdown()

    # Then: Both ran before the worker stopped
    await asyncio.gather(*pending)
    assert done == [1, 2]
