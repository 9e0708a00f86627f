"""JSON error bodies for the HTTP surface.

Every failure answers with {error, message, request_id, details}. HTTP errors
are named by status code; attachment errors are named by exception class and
mapped to a status through `_FILEPOND_ERROR_STATUS`.
"""

from __future__ import annotations

import logging
from typing import cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from filepond_backend.errors import (
    FilepondError,
    InvalidTemporaryReferenceError,
    UnknownDiskError,
    UploadFailedError,
)
from filepond_backend.schemas.errors import ErrorResponse

logger = logging.getLogger(__name__)

_STATUS_ERROR_NAMES: dict[int, str] = {
    400: "bad_request",
    404: "not_found",
    413: "payload_too_large",
    422: "validation_error",
    500: "internal_error",
    502: "storage_error",
    503: "unavailable",
}

# Most specific class first; FilepondError is the catch-all.
_FILEPOND_ERROR_STATUS: tuple[tuple[type[FilepondError], int], ...] = (
    (UnknownDiskError, 400),
    (InvalidTemporaryReferenceError, 400),
    (UploadFailedError, 502),
    (FilepondError, 400),
)


def _error_name(status_code: int) -> str:
    return _STATUS_ERROR_NAMES.get(status_code, f"http_{status_code}")


def _filepond_status(exc: FilepondError) -> int:
    for exc_type, status_code in _FILEPOND_ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return 400


def _json_error(
    request: Request,
    *,
    status_code: int,
    error: str,
    message: str,
    details: object | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    payload = ErrorResponse(
        error=error,
        message=message,
        request_id=getattr(request.state, "request_id", None),
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(payload, exclude_none=True),
        headers=headers,
    )


async def _handle_http_error(request: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    detail = http_exc.detail

    message = str(detail)
    details: object | None = None
    # Routes may raise detail={'message': str, 'details': object}.
    if isinstance(detail, dict) and isinstance(detail.get("message"), str):
        message = detail["message"]
        details = detail.get("details")
    elif isinstance(detail, (dict, list)):
        details = detail

    return _json_error(
        request,
        status_code=http_exc.status_code,
        error=_error_name(http_exc.status_code),
        message=message,
        details=details,
        headers=getattr(http_exc, "headers", None),
    )


async def _handle_validation_error(request: Request, exc: Exception) -> JSONResponse:
    return _json_error(
        request,
        status_code=422,
        error=_error_name(422),
        message="Request validation error",
        details=cast(RequestValidationError, exc).errors(),
    )


async def _handle_filepond_error(request: Request, exc: Exception) -> JSONResponse:
    filepond_exc = cast(FilepondError, exc)
    return _json_error(
        request,
        status_code=_filepond_status(filepond_exc),
        error=type(filepond_exc).__name__,
        message=str(filepond_exc) or "Attachment error",
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled exception request_id=%s method=%s path=%s",
        getattr(request.state, "request_id", None),
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return _json_error(
        request, status_code=500, error=_error_name(500), message="Internal server error"
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(FilepondError, _handle_filepond_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
