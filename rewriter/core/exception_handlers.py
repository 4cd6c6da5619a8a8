"""Global exception handlers for consistent error responses.

Every failure leaves the API as ``{"error": "<message>"}`` with the status
that matches its cause:
- AppError subclasses -> the status they carry (400, 401, 429, upstream status)
- framework HTTP errors (404, 405, ...) -> their own status
- body/shape validation errors -> 400
- unexpected Exception -> generic 500 (safety net, nothing leaked)

The request id travels in the X-Request-ID response header.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rewriter.api.responses import INTERNAL_ERROR_MESSAGE, app_error_response, error_response
from rewriter.core.errors import AppError, UpstreamAppError

logger = logging.getLogger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with the status it carries."""
    log_extra = {
        "error_code": exc.code,
        "status_code": exc.status_code,
        "request_path": request.url.path,
    }
    if isinstance(exc, UpstreamAppError):
        log_extra["classification"] = exc.classification.value

    logger.warning("app_error_handled", extra=log_extra)
    return app_error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown path, wrong method) in the API shape."""
    logger.info(
        "http_error_handled",
        extra={
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"

    first = errors[0]
    location = ".".join(
        part for part in first.get("loc", ()) if isinstance(part, str) and part != "body"
    )
    reason = first.get("msg", "invalid value")
    if location:
        return f"Invalid request body: '{location}' {reason.lower()}"
    return f"Invalid request body: {reason.lower()}"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject wrong-shape bodies with 400 instead of FastAPI's default 422."""
    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(exc.errors()),
        },
    )
    return error_response(400, _describe_validation_error(exc))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure in full for debugging while the client only sees a
    generic message: no stack traces or exception text leave the server.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return error_response(500, INTERNAL_ERROR_MESSAGE)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with a FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
