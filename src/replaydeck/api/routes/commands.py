"""Command and state endpoints over plain HTTP."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from replaydeck.api.dependencies import get_replaydeck_app
from replaydeck.api.errors import api_error_from, shutting_down_error
from replaydeck.commands.validation import parse_command
from replaydeck.errors import CommandError, PoolError
from replaydeck.models.transitions import TRANSITIONS, TransitionDescriptor

if TYPE_CHECKING:
    from replaydeck.app import Application

router = APIRouter(tags=["commands"])


class StateResponse(BaseModel):
    slots: list[int]
    progress: bool
    transition: str


@router.post("/api/v1/commands")
async def post_command(
    payload: Any = Body(...),
    app: Application = Depends(get_replaydeck_app),
) -> dict[str, Any]:
    """Run one `{cmd, slot}` command and return after it completed."""
    try:
        command = parse_command(payload, app.pool.capacity)
        await app.orchestrator.execute(command)
    except (CommandError, PoolError) as exc:
        raise api_error_from(exc) from exc
    except RuntimeError as exc:
        if app.lane.is_running():
            raise
        raise shutting_down_error() from exc
    return {}


@router.get("/api/v1/state", response_model=StateResponse)
async def get_state(app: Application = Depends(get_replaydeck_app)) -> StateResponse:
    """Current pool view, same shape as the WebSocket push."""
    return StateResponse.model_validate(app.orchestrator.snapshot().to_message())


@router.get("/api/v1/transitions", response_model=list[TransitionDescriptor])
async def get_transitions() -> list[TransitionDescriptor]:
    """Transition table in cycling order."""
    return list(TRANSITIONS)
