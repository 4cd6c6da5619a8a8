"""Classification of upstream generation failures.

Provider SDKs raise different exception types with differently shaped
payloads. Everything here works on duck-typed attributes so one rule set
covers google-genai ``APIError`` (``code``/``status``/``details``), openai
``APIStatusError`` (``status_code``/``body``) and plain transport errors.

Rules, first match wins:
1. quota exhaustion (429 or RESOURCE_EXHAUSTED, with a full-payload scan as
   a last resort)
2. authorization failure (401/403 or credential-related message text)
3. any other 4xx is a malformed request
4. everything else is unknown and keeps the upstream status, default 500
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from rewriter.core.errors import ErrorClass

QUOTA_STATUS = 429
QUOTA_MARKER = "RESOURCE_EXHAUSTED"
AUTH_STATUSES = frozenset({401, 403})
AUTH_MARKERS = (
    "api key",
    "api_key_invalid",
    "permission_denied",
    "unauthenticated",
)
DEFAULT_STATUS = 500


@dataclass(frozen=True)
class ErrorClassification:
    classification: ErrorClass
    http_status: int
    message: str
    raw_detail: str


def _coerce_status(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _payload(exc: BaseException) -> Any:
    """Return the parsed error body attached to the exception, if any."""
    for attr in ("details", "body", "response_json"):
        value = getattr(exc, attr, None)
        if value:
            return value
    return None


def _embedded_error(payload: Any) -> Mapping[str, Any]:
    """Unwrap ``{"error": {...}}`` (possibly inside a list) from a payload."""
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if isinstance(payload, Mapping):
        inner = payload.get("error", payload)
        if isinstance(inner, Mapping):
            return inner
    return {}


def _status_codes(exc: BaseException, embedded: Mapping[str, Any]) -> list[int]:
    candidates = [
        getattr(exc, "status_code", None),
        getattr(exc, "code", None),
        getattr(getattr(exc, "response", None), "status_code", None),
        embedded.get("code"),
    ]
    return [code for code in map(_coerce_status, candidates) if code is not None]


def _status_texts(exc: BaseException, embedded: Mapping[str, Any]) -> list[str]:
    candidates = [getattr(exc, "status", None), embedded.get("status")]
    return [text for text in candidates if isinstance(text, str)]


def _message(exc: BaseException, embedded: Mapping[str, Any]) -> str:
    for candidate in (getattr(exc, "message", None), embedded.get("message"), str(exc)):
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return type(exc).__name__


def serialize_error(exc: BaseException) -> str:
    """Serialize an exception and its attached payload for logs and scanning."""
    snapshot = {
        "type": type(exc).__name__,
        "message": str(exc),
        "payload": _payload(exc),
        "attributes": {k: v for k, v in vars(exc).items() if not k.startswith("_")},
    }
    try:
        return json.dumps(snapshot, default=str, skipkeys=True)
    except (TypeError, ValueError):
        return repr(exc)


def _is_quota(codes: list[int], texts: list[str], message: str, raw_detail: str) -> bool:
    if QUOTA_STATUS in codes:
        return True
    if any(QUOTA_MARKER in text.upper() for text in texts):
        return True
    if QUOTA_MARKER in message or str(QUOTA_STATUS) in message:
        return True
    # Last resort: nothing structured matched, scan the whole serialized error.
    return QUOTA_MARKER in raw_detail


def _is_auth(codes: list[int], texts: list[str], message: str) -> bool:
    if AUTH_STATUSES.intersection(codes):
        return True
    haystack = " ".join([message, *texts]).lower()
    return any(marker in haystack for marker in AUTH_MARKERS)


def classify_exception(exc: BaseException) -> ErrorClassification:
    """Map an exception raised by an upstream call to an ErrorClass.

    Args:
        exc: Exception raised by the provider SDK or transport.

    Returns:
        ErrorClassification with the class, the status the HTTP layer should
        use, the caller-facing message and the full serialized detail.
    """
    embedded = _embedded_error(_payload(exc))
    codes = _status_codes(exc, embedded)
    texts = _status_texts(exc, embedded)
    message = _message(exc, embedded)
    raw_detail = serialize_error(exc)

    if _is_quota(codes, texts, message, raw_detail):
        return ErrorClassification(ErrorClass.QUOTA_EXHAUSTED, QUOTA_STATUS, message, raw_detail)

    status = codes[0] if codes else None

    if _is_auth(codes, texts, message):
        return ErrorClassification(ErrorClass.AUTH_INVALID, status or 403, message, raw_detail)

    if status is not None and 400 <= status < 500:
        return ErrorClassification(ErrorClass.MALFORMED, status, message, raw_detail)

    return ErrorClassification(ErrorClass.UNKNOWN, status or DEFAULT_STATUS, message, raw_detail)
