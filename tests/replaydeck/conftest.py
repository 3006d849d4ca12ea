"""Shared pytest fixtures for ReplayDeck tests."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from pathlib import Path

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest

from replaydeck.models.enums import ArtifactKind
from replaydeck.models.transitions import TransitionCycle
from replaydeck.pool.manager import SlotPool
from replaydeck.pool.naming import path_for
from tests.replaydeck.mocks import MockAssembler, MockEditor


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer REPLAYDECK_* variables out of config tests."""
    for key in list(os.environ):
        if key.startswith("REPLAYDECK_"):
            monkeypatch.delenv(key)


@pytest.fixture
def queue_dir(tmp_path: Path) -> Path:
    path = tmp_path / "queue"
    path.mkdir()
    return path


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    path = tmp_path / "input"
    path.mkdir()
    return path


@pytest.fixture
def pool(queue_dir: Path) -> SlotPool:
    return SlotPool(queue_dir, 5)


@pytest.fixture
def put_artifact(queue_dir: Path) -> Callable[..., Path]:
    """Write a slot artifact file directly into the queue directory."""

    def _put(slot: int, kind: ArtifactKind = ArtifactKind.ORIGINAL, data: bytes = b"") -> Path:
        path = path_for(queue_dir, slot, kind)
        path.write_bytes(data or f"slot-{slot}-{kind}".encode())
        return path

    return _put


@pytest.fixture
def editor() -> MockEditor:
    return MockEditor()


@pytest.fixture
def assembler() -> MockAssembler:
    return MockAssembler()


@pytest.fixture
def transitions() -> TransitionCycle:
    return TransitionCycle("PERL")
