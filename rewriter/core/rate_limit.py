"""Rate limiting middleware for the /api/ routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Runs ahead of all other request handling on /api/ (method checks, body
  parsing, credential resolution), so a throttled client gets a 429 no
  matter what it sent.
- Swap-friendly: the limiter is reached only through AbstractRateLimiter.
- Safe logging: client identifiers are logged as a hash, never raw.

Client identifier:
- first value of X-Forwarded-For when present (and trusted)
- else the direct peer address
- else "unknown", so every unattributable client shares one bucket
"""

from __future__ import annotations

import logging

from fastapi import Request, Response

from rewriter.adapters.rate_limit.base import AbstractRateLimiter
from rewriter.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from rewriter.api.responses import rate_limited_response
from rewriter.core.config import settings
from rewriter.core.logging import fingerprint

logger = logging.getLogger(__name__)

RATE_LIMITED_PATH_PREFIX = "/api/"
UNKNOWN_CLIENT = "unknown"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_max_tracked_keys,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            max_tracked_keys=settings.app.rate_limit_max_tracked_keys,
        )
        _limiter_config = config

    return _limiter


def resolve_client_id(request: Request) -> str:
    """Derive the rate limit bucket for a request.

    Args:
        request: Incoming request.

    Returns:
        str: Client identifier, or "unknown" when nothing identifies it.
    """

    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """HTTP middleware admitting or rejecting /api/ requests.

    Consumes one unit of the client's budget per request. Rejected requests
    get ``429 {"error": "Too many requests. Please try again later."}``.
    """

    if not settings.app.rate_limit_enabled or not request.url.path.startswith(
        RATE_LIMITED_PATH_PREFIX
    ):
        return await call_next(request)

    client_id = resolve_client_id(request)
    result = get_rate_limiter().admit(client_id)
    log_extra = {
        "client_hash": fingerprint(client_id),
        "path": request.url.path,
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": settings.app.rate_limit_window_seconds,
    }

    if result.allowed:
        logger.debug("rate_limit.allowed", extra=log_extra)
        return await call_next(request)

    logger.warning(
        "rate_limit.exceeded",
        extra={**log_extra, "retry_after_s": result.retry_after_seconds},
    )
    return rate_limited_response(
        result,
        include_headers=settings.app.rate_limit_include_headers,
    )
