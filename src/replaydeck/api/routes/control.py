"""WebSocket control channel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from replaydeck.api.dependencies import get_replaydeck_app
from replaydeck.api.errors import (
    APIError,
    api_error_from,
    error_payload,
    internal_error,
    shutting_down_error,
)
from replaydeck.commands.validation import parse_command
from replaydeck.errors import CommandError, PoolError

if TYPE_CHECKING:
    from replaydeck.app import Application

logger = logging.getLogger(__name__)

router = APIRouter(tags=["control"])


def _client_id(websocket: WebSocket) -> str:
    client = websocket.client
    if client is None:
        return f"unknown:{id(websocket)}"
    return f"{client.host}:{client.port}"


def _ok_reply() -> dict[str, Any]:
    return {"type": "response", "status": status.HTTP_200_OK}


def _error_reply(error: APIError) -> dict[str, Any]:
    return {
        "type": "response",
        "status": error.status_code,
        **error_payload(str(error), error.error_code),
    }


@router.websocket("/ws")
async def control_socket(
    websocket: WebSocket,
    app: Application = Depends(get_replaydeck_app),
) -> None:
    """Receive `{cmd, slot}` frames, push the pool view on every change."""
    await websocket.accept()
    client_id = _client_id(websocket)
    await app.hub.connect(client_id, websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            payload = message.get("text")
            if payload is None:
                payload = message.get("bytes") or b""
            reply = await _handle_frame(app, client_id, payload)
            await websocket.send_json(reply)
    except WebSocketDisconnect:
        pass
    finally:
        app.hub.disconnect(client_id)


async def _handle_frame(app: Application, client_id: str, payload: str | bytes) -> dict[str, Any]:
    try:
        command = parse_command(payload, app.pool.capacity)
    except CommandError as exc:
        logger.warning("Rejected command from %s: %s", client_id, exc)
        return _error_reply(api_error_from(exc))

    logger.info("Command %s from %s", command.name, client_id, extra={"slot": command.slot or None})
    try:
        await app.orchestrator.execute(command)
    except (CommandError, PoolError) as exc:
        return _error_reply(api_error_from(exc))
    except Exception:
        if not app.lane.is_running():
            return _error_reply(shutting_down_error())
        logger.exception("Command %s from %s failed", command.name, client_id)
        return _error_reply(internal_error())
    return _ok_reply()
