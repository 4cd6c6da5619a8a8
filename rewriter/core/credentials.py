"""Credential resolution for upstream generation calls.

A request may carry the caller's own key; otherwise the server-wide default
(``LLM_API_KEY`` / ``GEMINI_API_KEY``) is used. Keys are never stored: a
Credential lives for one request only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from rewriter.core.errors import CredentialRequiredError, MissingCredentialError
from rewriter.core.logging import fingerprint

logger = logging.getLogger(__name__)

MISSING_CREDENTIAL_MESSAGE = (
    "API Key is missing. Please configure it on the server or provide one."
)
CREDENTIAL_REQUIRED_MESSAGE = "API Key is required"


class CredentialSource(str, Enum):
    USER_SUPPLIED = "user_supplied"
    SERVER_DEFAULT = "server_default"


@dataclass(frozen=True)
class Credential:
    """An opaque bearer key plus where it came from."""

    value: str = field(repr=False)
    source: CredentialSource

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.value)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_credential(request_credential: str | None, *, server_default: str | None) -> Credential:
    """Pick the credential for a rewrite call.

    The caller's key always wins when present and non-blank.

    Args:
        request_credential: Key sent with the request, if any.
        server_default: Process-wide default key, if configured.

    Returns:
        Credential: The trimmed key and its provenance.

    Raises:
        MissingCredentialError: If neither key is available.
    """
    user_key = _clean(request_credential)
    if user_key:
        credential = Credential(user_key, CredentialSource.USER_SUPPLIED)
    else:
        default_key = _clean(server_default)
        if not default_key:
            logger.warning("credential.missing", extra={"server_default_configured": False})
            raise MissingCredentialError(
                code="api_key_missing",
                message=MISSING_CREDENTIAL_MESSAGE,
                details={"hint": "Send apiKey in the request body or set LLM_API_KEY"},
            )
        credential = Credential(default_key, CredentialSource.SERVER_DEFAULT)

    logger.debug(
        "credential.resolved",
        extra={"source": credential.source.value, "key_hash": credential.fingerprint},
    )
    return credential


def require_user_credential(request_credential: str | None) -> Credential:
    """Return the caller's own key, never the server default.

    Raises:
        CredentialRequiredError: If the request carries no usable key.
    """
    user_key = _clean(request_credential)
    if not user_key:
        raise CredentialRequiredError(
            code="api_key_required",
            message=CREDENTIAL_REQUIRED_MESSAGE,
        )
    return Credential(user_key, CredentialSource.USER_SUPPLIED)
