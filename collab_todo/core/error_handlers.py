# File: collab_todo/core/error_handlers.py | Version: 1.0 | Title: Domain error mapping + standardized error envelope
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from collab_todo.core.config import settings
from collab_todo.core.errors import (
    AppError,
    AuthError,
    BackendError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

log = logging.getLogger(__name__)

_CODE_MAP = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_SERVER_ERROR",
}

_STATUS_BY_ERROR = {
    AuthError: 401,
    PermissionDeniedError: 403,
    NotFoundError: 404,
    ValidationError: 422,
    BackendError: 400,
}


def _err(code: int, message: str):
    return {"error": {"code": _CODE_MAP.get(code, "ERROR"), "message": message}}


def status_for(exc: AppError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 400


def register_app_error_handler(app: FastAPI) -> None:
    """Services raise AppError subclasses; turn them into HTTP responses."""

    @app.exception_handler(AppError)
    async def _app_error(_req: Request, exc: AppError):
        code = status_for(exc)
        if settings.ENABLE_STD_ERRORS:
            return JSONResponse(status_code=code, content=_err(code, exc.message))
        return JSONResponse(status_code=code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_exc(_req: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_err(exc.status_code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(_req: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content=_err(422, "Validation error"))

    @app.exception_handler(Exception)
    async def _unhandled(req: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", req.method, req.url.path)
        # Avoid leaking internals
        return JSONResponse(status_code=500, content=_err(500, "Internal server error"))
