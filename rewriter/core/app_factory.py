from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests and the server entry point build the exact same application.
"""

from fastapi import FastAPI

from rewriter.api.routes import health_router, rewrite_router
from rewriter.core.config import settings
from rewriter.core.exception_handlers import setup_exception_handlers
from rewriter.core.logging import configure_logging
from rewriter.core.middleware import request_id_middleware
from rewriter.core.rate_limit import rate_limit_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Text Rewriter API",
        description=(
            "Rewrites text in a natural human voice through an upstream "
            "generative model, falling back to a cheaper model when the "
            "primary model's quota is exhausted. Also verifies caller API keys. "
            "All /api/ routes are rate limited per client."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    # Middleware: the last registered runs first, so the request id wraps
    # the rate limiter and throttled responses are correlated too.
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(rewrite_router)
    app.include_router(health_router)

    return app
