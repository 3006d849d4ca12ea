"""API route registration."""

from __future__ import annotations

from fastapi import FastAPI

from replaydeck.api.routes import commands, control, health


def register_routes(app: FastAPI) -> None:
    """Register all API routers."""
    app.include_router(health.router)
    app.include_router(commands.router)
    app.include_router(control.router)
