"""Value types exchanged with generation clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from rewriter.core.errors import ErrorClass


@dataclass(frozen=True)
class SamplingConfig:
    temperature: float
    top_p: float
    top_k: int


@dataclass(frozen=True)
class GenerationRequest:
    """One upstream call attempt.

    Attributes:
        model_id: Upstream model identifier.
        prompt_text: User text sent as the single user turn.
        system_instruction: Optional system prompt; None leaves the provider default.
        sampling: Optional sampling override; None leaves the provider default.
    """

    model_id: str
    prompt_text: str
    system_instruction: str | None = None
    sampling: SamplingConfig | None = None


@dataclass(frozen=True)
class GenerationSuccess:
    text: str
    model_id: str


@dataclass(frozen=True)
class GenerationFailure:
    """A classified upstream failure.

    Attributes:
        classification: Error class decided by the classifier.
        message: Upstream message, safe to hand back to the caller.
        raw_detail: Full serialized error for server-side logs only.
        http_status_hint: Status the HTTP layer should answer with.
        model_id: Model the failing call targeted.
    """

    classification: ErrorClass
    message: str
    raw_detail: str
    http_status_hint: int
    model_id: str


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]
