"""Rewrite service: primary model call with quota-aware fallback.

This service is the core decision layer of the API. It handles:
- Input validation and normalization
- Building one immutable GenerationRequest per attempt
- Calling the primary model, and on quota exhaustion only, the secondary
- Logging every upstream failure before it is translated for the caller

State machine::

    Start -> PrimaryAttempt -> Done
                            -> SecondaryAttempt -> Done   (QUOTA_EXHAUSTED only)

Auth, malformed and unknown failures are not transient, so they end the
attempt immediately. Whatever the secondary returns is final.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from rewriter.adapters.llm.base import AbstractGenerationClient
from rewriter.adapters.llm.types import (
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
)
from rewriter.core.credentials import Credential
from rewriter.core.errors import ErrorClass, UpstreamAppError, ValidationAppError
from rewriter.services.model_profiles import ModelProfile
from rewriter.utils.text_normalizer import normalize_text

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], AbstractGenerationClient]


@dataclass(frozen=True)
class RewriteAttempt:
    """Record of one fallback cycle. Never persisted.

    Attributes:
        primary: Outcome of the primary model call.
        secondary: Outcome of the secondary call, if one was made.
    """

    primary: GenerationOutcome
    secondary: GenerationOutcome | None = None

    @property
    def final(self) -> GenerationOutcome:
        return self.secondary if self.secondary is not None else self.primary

    @property
    def fell_back(self) -> bool:
        return self.secondary is not None


def upstream_error(failure: GenerationFailure) -> UpstreamAppError:
    """Wrap a final generation failure for the HTTP layer."""
    return UpstreamAppError(
        code=failure.classification.value,
        message=failure.message,
        details={
            "model": failure.model_id,
            "classification": failure.classification.value,
            "http_status": failure.http_status_hint,
        },
        classification=failure.classification,
        upstream_status=failure.http_status_hint,
    )


class RewriteService:
    """Rewrites text through the primary model with a one-shot fallback.

    Attributes:
        client_factory: Builds a generation client for a credential value.
        primary: Profile tried first.
        secondary: Profile used once when the primary reports quota exhaustion.
        system_instruction: Fixed rewrite instruction sent with both attempts.
        max_text_chars: Upper bound on input length.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        *,
        primary: ModelProfile,
        secondary: ModelProfile,
        system_instruction: str,
        max_text_chars: int = 20000,
    ) -> None:
        self.client_factory = client_factory
        self.primary = primary
        self.secondary = secondary
        self.system_instruction = system_instruction
        self.max_text_chars = max_text_chars

    def _prepare_text(self, text: str) -> str:
        """Normalize and validate the rewrite input.

        Raises:
            ValidationAppError: If the text is blank or too long.
        """
        text = normalize_text(text)
        if not text:
            raise ValidationAppError(
                code="text_empty",
                message="Text is required.",
            )
        if len(text) > self.max_text_chars:
            raise ValidationAppError(
                code="text_too_long",
                message=f"Text is too long (maximum {self.max_text_chars} characters).",
                details={"max_value": self.max_text_chars, "actual_value": len(text)},
            )
        return text

    def _build_request(self, profile: ModelProfile, text: str) -> GenerationRequest:
        return GenerationRequest(
            model_id=profile.model_id,
            prompt_text=text,
            system_instruction=self.system_instruction,
            sampling=profile.sampling,
        )

    async def run(self, text: str, credential: Credential) -> RewriteAttempt:
        """Execute the fallback state machine for already-prepared text.

        Args:
            text: Normalized text to rewrite.
            credential: Resolved credential used for both attempts.

        Returns:
            RewriteAttempt holding the primary and optional secondary outcome.
        """
        client = self.client_factory(credential.value)
        try:
            primary = await client.generate(self._build_request(self.primary, text))
            if isinstance(primary, GenerationSuccess):
                return RewriteAttempt(primary=primary)

            if primary.classification is not ErrorClass.QUOTA_EXHAUSTED:
                return RewriteAttempt(primary=primary)

            logger.warning(
                "rewrite.fallback",
                extra={
                    "from_model": self.primary.model_id,
                    "to_model": self.secondary.model_id,
                    "key_source": credential.source.value,
                },
            )
            secondary = await client.generate(self._build_request(self.secondary, text))
            return RewriteAttempt(primary=primary, secondary=secondary)
        finally:
            await client.aclose()

    async def rewrite(self, text: str, credential: Credential) -> str:
        """Rewrite ``text`` and return the generated text.

        Args:
            text: Raw text from the request.
            credential: Resolved credential.

        Returns:
            The rewritten text.

        Raises:
            ValidationAppError: If the input is blank or too long.
            UpstreamAppError: If the final attempt failed; carries its
                classification, status and upstream message.
        """
        prepared = self._prepare_text(text)
        attempt = await self.run(prepared, credential)
        outcome = attempt.final

        if isinstance(outcome, GenerationSuccess):
            logger.info(
                "rewrite.completed",
                extra={
                    "model": outcome.model_id,
                    "fell_back": attempt.fell_back,
                    "input_chars": len(prepared),
                    "output_chars": len(outcome.text),
                    "key_source": credential.source.value,
                },
            )
            return outcome.text

        logger.error(
            "rewrite.failed",
            extra={
                "model": outcome.model_id,
                "fell_back": attempt.fell_back,
                "classification": outcome.classification.value,
                "http_status": outcome.http_status_hint,
                "error_detail": outcome.raw_detail,
                "key_source": credential.source.value,
                "key_hash": credential.fingerprint,
            },
        )
        raise upstream_error(outcome)
