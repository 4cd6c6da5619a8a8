"""Translation of internal outcomes into the public JSON contract.

Every response body carries either the success payload or an ``error``
string; nothing else reaches the browser client.
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

from rewriter.adapters.rate_limit.base import RateLimitResult
from rewriter.core.errors import AppError
from rewriter.schemas.rewrite import RewriteResponse, VerifyResponse
from rewriter.services.verification_service import VerificationResult

RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
INTERNAL_ERROR_MESSAGE = "Internal Server Error"
VERIFY_FAILED_MESSAGE = "API key verification failed"


def error_response(
    status_code: int,
    message: str,
    *,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def app_error_response(exc: AppError) -> JSONResponse:
    """Render an AppError with the status it carries."""
    return error_response(exc.status_code, exc.message)


def rate_limited_response(result: RateLimitResult, *, include_headers: bool) -> JSONResponse:
    headers: dict[str, str] | None = None
    if include_headers:
        headers = {
            "Retry-After": str(result.retry_after_seconds or 0),
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_at),
        }
    return error_response(429, RATE_LIMITED_MESSAGE, headers=headers)


def rewrite_success(text: str) -> RewriteResponse:
    return RewriteResponse(text=text)


def verification_response(result: VerificationResult) -> VerifyResponse | JSONResponse:
    """200 ``{"status": "valid"}`` or 400 ``{"status": "invalid", "error"}``."""
    if result.valid:
        return VerifyResponse()
    return JSONResponse(
        status_code=400,
        content={"status": "invalid", "error": result.detail or VERIFY_FAILED_MESSAGE},
    )
