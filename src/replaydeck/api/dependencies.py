"""FastAPI dependency helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi import status
from starlette.requests import HTTPConnection

from replaydeck.api.errors import APIError, APIErrorCode

if TYPE_CHECKING:
    from replaydeck.app import Application


async def get_replaydeck_app(connection: HTTPConnection) -> Application:
    """Get the Application instance from app state.

    Works for both HTTP requests and WebSocket connections.
    """
    app = cast("Application | None", getattr(connection.app.state, "replaydeck", None))
    if app is None:
        raise APIError(
            "Application not initialized",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=APIErrorCode.APP_NOT_INITIALIZED,
        )
    return app
