"""Error Handlers — global exception handlers for the Bootcamp Tracker API.

Invariants:
    - BootcampError → its own http_status with the JSON error envelope
    - RequestValidationError → 400 VALIDATION_ERROR; the first failure becomes the message
    - Exception (catch-all) → 500 INTERNAL_ERROR, never leaks internal details
    - A 401 carrying a session cookie also clears that cookie
    - Upstream rate limits (ExternalAPIError with retry_after_ms) set Retry-After

Design Decisions:
    - Three-layer handler: domain (BootcampError), validation (Pydantic), catch-all (Exception)
    - 4xx domain errors log at warning, 5xx at error: auth failures are routine traffic
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from bootcamp_tracker.config import get_settings
from bootcamp_tracker.core.errors import (
    AuthenticationRequiredError, BootcampError, ErrorSeverity,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:

    @app.exception_handler(BootcampError)
    async def bootcamp_error_handler(request: Request, exc: BootcampError):
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        headers = {}
        if exc.context.retry_after_ms:
            headers["Retry-After"] = str(math.ceil(exc.context.retry_after_ms / 1000))
        response = JSONResponse(
            status_code=exc.http_status, content=exc.to_response(), headers=headers,
        )
        cookie_name = get_settings().session_cookie_name
        if isinstance(exc, AuthenticationRequiredError) and cookie_name in request.cookies:
            response.delete_cookie(cookie_name)
        return response


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _field_name(loc: tuple) -> str:
    # drop the "body"/"query" prefix FastAPI adds
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header", "cookie"):
        parts = parts[1:]
    return ".".join(parts)


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    errors = exc.errors()
    details = [
        {"field": _field_name(e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in errors
    ]
    message = "Invalid request data"
    if details:
        first = details[0]
        message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": message,
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": details,
        },
    }
