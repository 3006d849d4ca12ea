"""Tests for the HTTP and WebSocket control routes."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketTestSession

from replaydeck.api.server import create_app
from replaydeck.app import Application
from replaydeck.config import load_config_from_dict
from replaydeck.models.enums import ArtifactKind
from replaydeck.pool.naming import path_for
from tests.replaydeck.mocks import MockAssembler, MockEditor, MockInputSource


@pytest.fixture
def application(tmp_path: Path, queue_dir: Path) -> Application:
    config = load_config_from_dict(
        {
            "input": {"dir": str(tmp_path / "input")},
            "queue": {"dir": str(queue_dir), "slots": 3},
            "output": {"path": str(tmp_path / "replay.mp4")},
        }
    )
    return Application(
        config,
        editor=MockEditor(),
        assembler=MockAssembler(),
        source=MockInputSource(),
        serve_api=False,
    )


@pytest.fixture
def client(application: Application) -> Iterator[TestClient]:
    """TestClient whose event loop also runs the application components."""
    with TestClient(create_app(application)) as test_client:
        test_client.portal.call(application.start)
        yield test_client
        test_client.portal.call(application.shutdown)


def _receive_response(ws: WebSocketTestSession) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    """Read frames until the command reply; return it with the pushes seen on the way."""
    pushes: list[dict[str, Any]] = []
    while True:
        message = ws.receive_json()
        if message["type"] == "response":
            return message, pushes
        pushes.append(message)


def test_websocket_receives_state_on_connect(client: TestClient, queue_dir: Path) -> None:
    # Given: A running application with an empty 3-slot pool
    # When: A client connects
    with client.websocket_connect("/ws") as ws:
        message = ws.receive_json()

    # Then: The first frame is the full view
    assert message == {
        "type": "state",
        "slots": [0, 0, 0],
        "progress": False,
        "transition": "PERL",
    }


def test_websocket_rejects_invalid_commands(
    client: TestClient, application: Application, queue_dir: Path
) -> None:
    # Given: A replay in slot 1
    path_for(queue_dir, 1).write_bytes(b"o")
    client.portal.call(application.pool.refresh_state)
    before = application.pool.states

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        # When: EDIT with slot 0, junk and an unknown command
        ws.send_json({"cmd": "EDIT", "slot": 0})
        edit_reply, _ = _receive_response(ws)
        ws.send_text("{not json")
        junk_reply, _ = _receive_response(ws)
        ws.send_json({"cmd": "BOGUS", "slot": 1})
        bogus_reply, _ = _receive_response(ws)

    # Then: Each is answered with a client error and the pool is untouched
    for reply in (edit_reply, junk_reply, bogus_reply):
        assert reply["type"] == "response"
        assert reply["status"] == 400
        assert reply["error_code"] == "COMMAND_INVALID"
    assert application.pool.states == before
    assert path_for(queue_dir, 1).read_bytes() == b"o"


def test_websocket_accepts_binary_frames(client: TestClient) -> None:
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        # When: A valid command and junk arrive as binary frames
        ws.send_bytes(b'{"cmd": "TRANSITION", "slot": 0}')
        reply, _ = _receive_response(ws)
        ws.send_bytes(b"\xff\x00")
        junk_reply, _ = _receive_response(ws)

    # Then: Both are answered on the same connection
    assert reply == {"type": "response", "status": 200}
    assert junk_reply["status"] == 400
    assert junk_reply["error_code"] == "COMMAND_INVALID"


def test_websocket_survives_unexpected_command_failure(
    client: TestClient,
    application: Application,
    queue_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # Given: A replay in slot 1 and a filesystem that refuses deletes
    path_for(queue_dir, 1).write_bytes(b"o")
    client.portal.call(application.pool.refresh_state)

    def _refuse(slot: int) -> None:
        raise PermissionError(f"cannot remove slot {slot}")

    monkeypatch.setattr(application.pool, "clear", _refuse)

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        # When: CLEAR fails, then another command follows
        ws.send_json({"cmd": "CLEAR", "slot": 1})
        failed, _ = _receive_response(ws)
        ws.send_json({"cmd": "TRANSITION", "slot": 0})
        followup, _ = _receive_response(ws)

    # Then: The failure is reported and the connection keeps working
    assert failed["status"] == 500
    assert failed["error_code"] == "INTERNAL_SERVER_ERROR"
    assert followup == {"type": "response", "status": 200}


def test_websocket_transition_pushes_new_selection(client: TestClient) -> None:
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        # When: Cycling the transition
        ws.send_json({"cmd": "TRANSITION", "slot": 0})
        reply, pushes = _receive_response(ws)
        if not pushes:
            pushes.append(ws.receive_json())

    # Then: Success reply and a push with the next transition
    assert reply == {"type": "response", "status": 200}
    assert pushes[-1]["transition"] == "FADE"


def test_websocket_edit_on_clear_slot_is_conflict(client: TestClient) -> None:
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        # When: Editing an empty slot
        ws.send_json({"cmd": "EDIT", "slot": 2})
        reply, _ = _receive_response(ws)

    # Then: The client learns why nothing happened
    assert reply["status"] == 409
    assert reply["error_code"] == "SLOT_NOT_USED"


def test_http_export_without_cut_replays_is_conflict(client: TestClient) -> None:
    # Given: An empty pool
    # When: Posting EXPORT
    response = client.post("/api/v1/commands", json={"cmd": "EXPORT", "slot": 0})

    # Then: 409 with the stable error code
    assert response.status_code == 409
    assert response.json() == {
        "detail": "No cut replays available",
        "error_code": "NO_CUT_REPLAYS",
    }


def test_http_export_runs_assembler(
    client: TestClient, application: Application, queue_dir: Path
) -> None:
    # Given: A cut replay in slot 1
    path_for(queue_dir, 1).write_bytes(b"o")
    path_for(queue_dir, 1, ArtifactKind.CUT).write_bytes(b"c")
    client.portal.call(application.pool.refresh_state)

    # When: Posting EXPORT
    response = client.post("/api/v1/commands", json={"cmd": "EXPORT", "slot": 0})

    # Then: Success and the output was written
    assert response.status_code == 200
    assert response.json() == {}
    assert application.config.output.path.read_bytes() == b"exported"


def test_http_invalid_command_rejected(client: TestClient) -> None:
    response = client.post("/api/v1/commands", json={"cmd": "CLEAR", "slot": 7})

    assert response.status_code == 400
    assert response.json()["error_code"] == "COMMAND_INVALID"


def test_get_state_and_transitions(client: TestClient) -> None:
    # When: Reading the state and the transition table
    state = client.get("/api/v1/state")
    transitions = client.get("/api/v1/transitions")

    # Then: Both reflect the running application
    assert state.status_code == 200
    assert state.json() == {"slots": [0, 0, 0], "progress": False, "transition": "PERL"}
    ids = [t["id"] for t in transitions.json()]
    assert ids[0] == "CUTX"
    assert len(ids) == 12


def test_health_reports_running_components(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["slots_total"] == 3
    assert body["uptime_s"] >= 0.0
    assert 0.0 <= body["last_scan_age_s"] < 60.0


def test_health_unhealthy_when_not_started(application: Application) -> None:
    # Given: Application components were never started
    with TestClient(create_app(application)) as test_client:
        # When: Probing health
        response = test_client.get("/health")

    # Then: 503 with stopped components
    assert response.status_code == 503
    assert response.json()["lane"] == "stopped"
