from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from precinct.domain.errors import AppError, ErrorKind

logger = logging.getLogger(__name__)

_KIND_BY_STATUS: dict[int, ErrorKind] = {
    400: ErrorKind.VALIDATION_ERROR,
    401: ErrorKind.UNAUTHENTICATED,
    403: ErrorKind.UNAUTHORIZED,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.VALIDATION_ERROR,
}


def error_payload(
    kind: ErrorKind,
    message: str,
    field_errors: dict[str, str] | None = None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "errorCode": str(kind), "message": message}
    details: dict[str, Any] = dict(extra or {})
    if field_errors:
        details["fieldErrors"] = field_errors
    if details:
        payload["details"] = details
    return payload


def _field_path(loc: tuple[Any, ...]) -> str:
    parts = [str(item) for item in loc if item not in ("body", "query", "path")]
    return ".".join(parts) or str(loc[0] if loc else "body")


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(exc.kind, exc.message, exc.field_errors),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        field_errors: dict[str, str] = {}
        for error in exc.errors():
            field_errors.setdefault(_field_path(tuple(error.get("loc", ()))), str(error.get("msg", "invalid")))
        return JSONResponse(
            status_code=400,
            content=error_payload(ErrorKind.VALIDATION_ERROR, "request validation failed", field_errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        kind = _KIND_BY_STATUS.get(exc.status_code, ErrorKind.INTERNAL_ERROR)
        detail = exc.detail
        extra: dict[str, Any] | None = None
        if isinstance(detail, str):
            message = detail
        else:
            message = HTTPStatus(exc.status_code).phrase
            if isinstance(detail, dict):
                extra = detail
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(kind, message, extra=extra),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_payload(ErrorKind.INTERNAL_ERROR, "internal server error"),
        )
