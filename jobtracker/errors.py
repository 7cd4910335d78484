"""
Error taxonomy shared by services and routers.

Services raise these; the handlers registered in main.py turn them into
`{"error": "<message>", "kind": "<kind>"}` responses so clients can branch
on a stable `kind` instead of parsing English messages.
"""

import logging
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    AUTHENTICATION_REQUIRED = "authentication_required"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    EXTERNAL_SERVICE_ERROR = "external_service_error"
    MALFORMED_EXTERNAL_RESPONSE = "malformed_external_response"


class AppError(Exception):
    """Base class: every subclass fixes its kind and HTTP status."""

    kind = ErrorKind.VALIDATION_ERROR
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequired(AppError):
    kind = ErrorKind.AUTHENTICATION_REQUIRED
    status_code = 401
    default_message = "Unauthorized"


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Not found"


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION_ERROR
    status_code = 400
    default_message = "Invalid request"


class Conflict(AppError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    default_message = "Conflict"


class ExternalServiceError(AppError):
    kind = ErrorKind.EXTERNAL_SERVICE_ERROR
    status_code = 502
    default_message = "External service failed"


class MalformedExternalResponse(AppError):
    kind = ErrorKind.MALFORMED_EXTERNAL_RESPONSE
    status_code = 502
    default_message = "External service returned an unreadable response"


def error_body(kind: ErrorKind, message: str) -> dict:
    return {"error": message, "kind": kind.value}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.kind.value)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.kind.value)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.kind, exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or mistyped body/query fields surface as validation_error (400)."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        problems.append(f"{location}: {err.get('msg')}" if location else err.get("msg", "invalid"))
    message = "; ".join(problems) or ValidationError.default_message
    return JSONResponse(status_code=400, content=error_body(ErrorKind.VALIDATION_ERROR, message))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
