"""Health endpoint."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from replaydeck.api.dependencies import get_replaydeck_app

if TYPE_CHECKING:
    from replaydeck.app import Application

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    watcher: str
    lane: str
    slots_used: int
    slots_total: int
    clients: int
    uptime_s: float
    last_scan_age_s: float


@router.get("/health", response_model=HealthResponse)
async def get_health(app: Application = Depends(get_replaydeck_app)) -> HealthResponse | JSONResponse:
    """Liveness check: watcher and pool lane are running."""
    watcher_ok = app.source.is_healthy()
    lane_ok = app.lane.is_running()

    response = HealthResponse(
        status="healthy" if watcher_ok and lane_ok else "unhealthy",
        watcher="running" if watcher_ok else "stopped",
        lane="running" if lane_ok else "stopped",
        slots_used=app.pool.used_count,
        slots_total=app.pool.capacity,
        clients=len(app.hub.client_ids),
        uptime_s=round(app.uptime_seconds, 3),
        last_scan_age_s=round(max(0.0, time.monotonic() - app.source.last_heartbeat()), 3),
    )
    if not (watcher_ok and lane_ok):
        return JSONResponse(status_code=503, content=response.model_dump(mode="json"))
    return response
