from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends

from rewriter.adapters.llm.factory import create_generation_client
from rewriter.api.responses import rewrite_success, verification_response
from rewriter.core.config import settings
from rewriter.core.credentials import require_user_credential, resolve_credential
from rewriter.schemas.rewrite import (
    ErrorResponse,
    RewriteRequest,
    RewriteResponse,
    VerifyFailureResponse,
    VerifyRequest,
    VerifyResponse,
)
from rewriter.services.model_profiles import (
    load_system_instruction,
    primary_profile,
    secondary_profile,
)
from rewriter.services.rewrite_service import RewriteService
from rewriter.services.verification_service import VerificationService

router = APIRouter(prefix="/api", tags=["Rewrite"])


@lru_cache(maxsize=1)
def get_rewrite_service() -> RewriteService:
    """Build the process-wide rewrite service from settings."""
    return RewriteService(
        create_generation_client,
        primary=primary_profile(settings.llm),
        secondary=secondary_profile(settings.llm),
        system_instruction=load_system_instruction(settings.llm.system_instruction_path),
        max_text_chars=settings.app.max_text_chars,
    )


@lru_cache(maxsize=1)
def get_verification_service() -> VerificationService:
    return VerificationService(
        create_generation_client,
        model_id=settings.llm.secondary_model,
        prompt=settings.llm.verify_prompt,
        timeout_seconds=settings.llm.verify_timeout_seconds,
    )


def get_server_credential() -> str | None:
    """Server-wide default key (LLM_API_KEY / GEMINI_API_KEY)."""
    return settings.llm.api_key


@router.post(
    "/rewrite",
    response_model=RewriteResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse, "description": "No API key supplied or configured"},
        429: {"model": ErrorResponse, "description": "Rate limit or upstream quota exceeded"},
    },
)
async def rewrite_text(
    payload: RewriteRequest,
    service: Annotated[RewriteService, Depends(get_rewrite_service)],
    server_credential: Annotated[str | None, Depends(get_server_credential)],
) -> RewriteResponse:
    """Rewrite text in a natural human voice.

    Uses the caller's ``apiKey`` when sent, otherwise the server default.
    The primary model is tried first; on upstream quota exhaustion the
    secondary model is tried once.

    Returns:
        RewriteResponse: ``{"text": "<rewritten text>"}``.

    Raises:
        MissingCredentialError: 401 when no key is available.
        ValidationAppError: 400 for blank or oversized text.
        UpstreamAppError: Final upstream failure with its own status.
    """
    credential = resolve_credential(payload.api_key, server_default=server_credential)
    text = await service.rewrite(payload.text, credential)
    return rewrite_success(text)


@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses={
        400: {"model": VerifyFailureResponse, "description": "Key missing or unusable"},
        429: {"model": ErrorResponse},
    },
)
async def verify_key(
    payload: VerifyRequest,
    service: Annotated[VerificationService, Depends(get_verification_service)],
):
    """Check that a caller-supplied key can reach the upstream model.

    Never falls back to the server default key.
    """
    credential = require_user_credential(payload.api_key)
    result = await service.verify(credential)
    return verification_response(result)
