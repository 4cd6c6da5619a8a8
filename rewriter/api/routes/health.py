from __future__ import annotations

from fastapi import APIRouter

from rewriter.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check, outside the rate limited /api/ prefix.

    Reports whether a server default key is configured, never the key itself.
    """

    return {
        "status": "ok",
        "provider": settings.llm.provider,
        "server_key_configured": bool(settings.llm.api_key),
    }
