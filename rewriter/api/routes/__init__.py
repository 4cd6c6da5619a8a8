from __future__ import annotations

from rewriter.api.routes.health import router as health_router
from rewriter.api.routes.rewrite import router as rewrite_router

__all__ = ["health_router", "rewrite_router"]
