"""Application-level exception types.

This module defines the error taxonomy shared by the adapters, services and
HTTP layer. Each AppError subclass knows the HTTP status it maps to, so the
exception handlers stay a thin translation step.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorClass(str, Enum):
    """Classification of a failed upstream generation call."""

    QUOTA_EXHAUSTED = "quota_exhausted"
    AUTH_INVALID = "auth_invalid"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability."""

    code: str
    message: str
    hint: str
    max_value: int
    actual_value: int
    http_status: int
    retry_after: int
    model: str
    classification: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message returned to the caller.
        details: Optional structured details for logs.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    http_status: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.http_status


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class CredentialRequiredError(AppError):
    """Raised when an operation needs a caller-supplied key and none was sent."""


class MissingCredentialError(AppError):
    """Raised when neither the caller nor the server provides a credential."""

    http_status = 401


class RateLimitedError(AppError):
    """Raised when a client exceeds its request budget."""

    http_status = 429


class ConfigurationAppError(AppError):
    """Raised when server-side configuration is unusable."""

    http_status = 500


@dataclass
class UpstreamAppError(AppError):
    """Raised when the upstream generation service fails for good.

    Attributes:
        classification: How the final failing call was classified.
        upstream_status: Status carried from the upstream failure (default 500).
    """

    classification: ErrorClass = ErrorClass.UNKNOWN
    upstream_status: int = 500

    @property
    def status_code(self) -> int:
        return self.upstream_status
