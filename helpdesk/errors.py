from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class HelpdeskError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(HelpdeskError):
    status_code = 401
    code = "UNAUTHENTICATED"


class Forbidden(HelpdeskError):
    """An authorization rule denied the action; ``reason`` names the rule."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, reason: str, action: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.action = action


class NotFound(HelpdeskError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(HelpdeskError):
    """Uniqueness violation, or a delete blocked by dependent rows."""

    status_code = 409
    code = "CONFLICT"


class ValidationError(HelpdeskError):
    status_code = 422
    code = "VALIDATION_ERROR"


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(request),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HelpdeskError)
    async def handle_helpdesk_error(request: Request, exc: HelpdeskError) -> JSONResponse:
        return error_response(request, status_code=exc.status_code, code=exc.code, message=exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code_map = {
            401: Unauthenticated.code,
            403: Forbidden.code,
            404: NotFound.code,
            409: Conflict.code,
        }
        message = str(exc.detail) if exc.detail else "Request failed."
        return error_response(
            request,
            status_code=exc.status_code,
            code=code_map.get(exc.status_code, "HTTP_ERROR"),
            message=message,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(
            request,
            status_code=422,
            code=ValidationError.code,
            message=str(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_error",
            extra={
                "request_id": get_request_id(request),
                "path": request.url.path,
                "method": request.method,
            },
        )
        return error_response(request, status_code=500, code="INTERNAL_ERROR", message="Unexpected server error.")
