"""Key verification probe.

Sends one trivial prompt to the cheap model to learn whether a caller's key
is usable. It is independent of the rewrite fallback: exactly one call, no
system instruction, no sampling override, and any failure means "invalid".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from rewriter.adapters.llm.base import AbstractGenerationClient
from rewriter.adapters.llm.types import GenerationRequest, GenerationSuccess
from rewriter.core.credentials import Credential
from rewriter.core.errors import ErrorClass

logger = logging.getLogger(__name__)

VerificationClientFactory = Callable[..., AbstractGenerationClient]


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    detail: str | None = None
    classification: ErrorClass | None = None


class VerificationService:
    def __init__(
        self,
        client_factory: VerificationClientFactory,
        *,
        model_id: str,
        prompt: str = "Hi",
        timeout_seconds: float = 8.0,
    ) -> None:
        self.client_factory = client_factory
        self.model_id = model_id
        self.prompt = prompt
        self.timeout_seconds = timeout_seconds

    async def verify(self, credential: Credential) -> VerificationResult:
        """Probe the upstream with ``credential``.

        Args:
            credential: Caller-supplied credential.

        Returns:
            VerificationResult; ``detail`` carries the upstream message on failure.
        """
        client = self.client_factory(credential.value, timeout_seconds=self.timeout_seconds)
        try:
            # A completed call proves the key works, even if the reply is empty.
            outcome = await client.generate(
                GenerationRequest(model_id=self.model_id, prompt_text=self.prompt),
                require_text=False,
            )
        finally:
            await client.aclose()

        if isinstance(outcome, GenerationSuccess):
            logger.info(
                "verify.valid",
                extra={"model": self.model_id, "key_hash": credential.fingerprint},
            )
            return VerificationResult(valid=True)

        logger.warning(
            "verify.invalid",
            extra={
                "model": self.model_id,
                "key_hash": credential.fingerprint,
                "classification": outcome.classification.value,
                "http_status": outcome.http_status_hint,
                "error_detail": outcome.raw_detail,
            },
        )
        return VerificationResult(
            valid=False,
            detail=outcome.message,
            classification=outcome.classification,
        )
