"""Canonical API error envelope and exception mapping."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from replaydeck.errors import (
    CommandValidationError,
    NoCutReplaysError,
    ReplayDeckError,
    SlotAlreadyClearError,
    SlotNotUsedError,
    SlotOutOfRangeError,
)

logger = logging.getLogger(__name__)


class APIErrorCode(StrEnum):
    """Stable API error codes for non-2xx responses and WebSocket replies."""

    APP_NOT_INITIALIZED = "APP_NOT_INITIALIZED"
    COMMAND_INVALID = "COMMAND_INVALID"
    SLOT_OUT_OF_RANGE = "SLOT_OUT_OF_RANGE"
    SLOT_ALREADY_CLEAR = "SLOT_ALREADY_CLEAR"
    SLOT_NOT_USED = "SLOT_NOT_USED"
    NO_CUT_REPLAYS = "NO_CUT_REPLAYS"
    SHUTTING_DOWN = "SHUTTING_DOWN"
    REQUEST_VALIDATION_FAILED = "REQUEST_VALIDATION_FAILED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


_STATUS_TO_DEFAULT_CODE: dict[int, APIErrorCode] = {
    status.HTTP_400_BAD_REQUEST: APIErrorCode.BAD_REQUEST,
    status.HTTP_404_NOT_FOUND: APIErrorCode.NOT_FOUND,
    status.HTTP_409_CONFLICT: APIErrorCode.CONFLICT,
    status.HTTP_503_SERVICE_UNAVAILABLE: APIErrorCode.SERVICE_UNAVAILABLE,
}

# Domain error -> (status, code). First match wins.
_DOMAIN_ERRORS: tuple[tuple[type[ReplayDeckError], int, APIErrorCode], ...] = (
    (CommandValidationError, status.HTTP_400_BAD_REQUEST, APIErrorCode.COMMAND_INVALID),
    (SlotOutOfRangeError, status.HTTP_400_BAD_REQUEST, APIErrorCode.SLOT_OUT_OF_RANGE),
    (SlotAlreadyClearError, status.HTTP_409_CONFLICT, APIErrorCode.SLOT_ALREADY_CLEAR),
    (SlotNotUsedError, status.HTTP_409_CONFLICT, APIErrorCode.SLOT_NOT_USED),
    (NoCutReplaysError, status.HTTP_409_CONFLICT, APIErrorCode.NO_CUT_REPLAYS),
)


class APIErrorResponse(BaseModel):
    """Canonical error envelope returned by API routes."""

    detail: str
    error_code: str


class APIError(RuntimeError):
    """Typed API exception mapped to the canonical error envelope."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: int,
        error_code: str | APIErrorCode,
        extra: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(detail)
        self.status_code = status_code
        if isinstance(error_code, APIErrorCode):
            self.error_code = error_code.value
        else:
            self.error_code = error_code
        self.extra = extra
        self.headers = headers


def api_error_from(exc: ReplayDeckError) -> APIError:
    """Map a rejected command to its API error."""
    for error_type, status_code, error_code in _DOMAIN_ERRORS:
        if isinstance(exc, error_type):
            return APIError(str(exc), status_code=status_code, error_code=error_code)
    return APIError(
        str(exc),
        status_code=status.HTTP_409_CONFLICT,
        error_code=APIErrorCode.CONFLICT,
    )


def shutting_down_error() -> APIError:
    return APIError(
        "Service is shutting down",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        error_code=APIErrorCode.SHUTTING_DOWN,
    )


def internal_error() -> APIError:
    return APIError(
        "Internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code=APIErrorCode.INTERNAL_SERVER_ERROR,
    )


def error_payload(
    detail: str,
    error_code: str,
    *,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload = APIErrorResponse(
        detail=detail,
        error_code=error_code,
    ).model_dump(mode="json")
    if extra:
        payload.update(extra)
    return payload


def _default_error_code_for_status(status_code: int) -> str:
    return _STATUS_TO_DEFAULT_CODE.get(status_code, APIErrorCode.HTTP_ERROR).value


def register_exception_handlers(app: FastAPI) -> None:
    """Register canonical API error handlers."""

    @app.exception_handler(APIError)
    async def _api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(
                detail=str(exc),
                error_code=exc.error_code,
                extra=exc.extra,
            ),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            content=error_payload(
                detail="Request validation failed",
                error_code=APIErrorCode.REQUEST_VALIDATION_FAILED.value,
                extra={"validation_errors": exc.errors()},
            ),
        )

    # Also covers fastapi.HTTPException, which subclasses it.
    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(
                detail=str(exc.detail) if exc.detail is not None else "Request failed",
                error_code=_default_error_code_for_status(exc.status_code),
            ),
            headers=dict(exc.headers) if exc.headers is not None else None,
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled API exception for path=%s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_payload(
                detail="Internal server error",
                error_code=APIErrorCode.INTERNAL_SERVER_ERROR.value,
            ),
        )
