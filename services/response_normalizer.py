"""
services/response_normalizer.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Maps provider-specific success and error shapes onto one canonical form.

Public API
----------
  extract_answer(payload)                  → first non-empty answer text or None
  classify_status(status)                  → ErrorKind for an HTTP status
  error_from_exception(candidate, exc)     → ProviderError for a transport failure
  normalize_response(candidate, response)  → answer text, or raises ProviderError
"""

import logging
from typing import Any, Sequence

import httpx

from core.errors import ErrorKind, ProviderError

logger = logging.getLogger(__name__)

__all__ = [
    "ANSWER_FIELD_PATHS",
    "extract_answer",
    "classify_status",
    "error_from_exception",
    "normalize_response",
]

PathStep = str | int

# Tried in order; the first path that leads to non-empty text wins.
ANSWER_FIELD_PATHS: tuple[tuple[PathStep, ...], ...] = (
    ("choices", 0, "message", "content"),   # chat completions (canonical)
    ("choices", 0, "text"),                 # legacy completions
    ("output_text",),                       # responses API
    ("candidates", 0, "content", "parts", 0, "text"),  # Gemini
)

_STATUS_KINDS = {
    400: ErrorKind.INVALID_REQUEST,
    401: ErrorKind.AUTH_ERROR,
    429: ErrorKind.RATE_LIMITED,
}

_MAX_DETAIL_CHARS = 500


# ---------------------------------------------------------------------------
# Success path
# ---------------------------------------------------------------------------
def _dig(payload: Any, path: Sequence[PathStep]) -> Any:
    node = payload
    for step in path:
        if isinstance(step, int):
            if not isinstance(node, list) or len(node) <= step:
                return None
        elif not isinstance(node, dict) or step not in node:
            return None
        node = node[step]
    return node


def _as_text(value: Any) -> str | None:
    # Some providers return message content as a list of typed parts.
    if isinstance(value, list):
        value = "".join(
            part.get("text", "") for part in value
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_answer(payload: Any) -> str | None:
    """Return the first non-empty text found along :data:`ANSWER_FIELD_PATHS`."""
    for path in ANSWER_FIELD_PATHS:
        text = _as_text(_dig(payload, path))
        if text is not None:
            return text
    return None


# ---------------------------------------------------------------------------
# Error path
# ---------------------------------------------------------------------------
def classify_status(status: int) -> ErrorKind:
    return _STATUS_KINDS.get(status, ErrorKind.UNKNOWN)


def _error_detail(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    for key in ("message", "detail"):
        if payload.get(key):
            return str(payload[key])
    return None


def _response_detail(response: httpx.Response) -> str:
    try:
        detail = _error_detail(response.json())
    except ValueError:
        detail = None
    if detail is None:
        detail = response.text.strip() or response.reason_phrase or f"HTTP {response.status_code}"
    return detail[:_MAX_DETAIL_CHARS]


def error_from_exception(candidate: str, exc: Exception) -> ProviderError:
    """Classify a transport-level failure (no HTTP response was received)."""
    if isinstance(exc, httpx.TimeoutException):
        return ProviderError(candidate, ErrorKind.TIMEOUT, f"request timed out: {exc}")
    return ProviderError(
        candidate, ErrorKind.UNKNOWN, f"{type(exc).__name__}: {exc}"
    )


def normalize_response(candidate: str, response: httpx.Response) -> str:
    """
    Return the answer text carried by *response*.

    Raises
    ------
    ProviderError
        On an HTTP error status, a non-JSON body, an error object embedded in
        a 200 body, or a body with no answer text.
    """
    if response.is_error:
        raise ProviderError(
            candidate, classify_status(response.status_code), _response_detail(response)
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderError(
            candidate, ErrorKind.UNKNOWN, f"response is not valid JSON: {exc}"
        ) from exc

    # OpenRouter relays upstream failures as {"error": {...}} with status 200.
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        code = payload["error"].get("code")
        kind = classify_status(code) if isinstance(code, int) else ErrorKind.UNKNOWN
        raise ProviderError(candidate, kind, _error_detail(payload) or "provider returned an error")
    if isinstance(payload, dict) and isinstance(payload.get("error"), str) and payload["error"].strip():
        raise ProviderError(candidate, ErrorKind.UNKNOWN, _error_detail(payload)[:_MAX_DETAIL_CHARS])

    answer = extract_answer(payload)
    if answer is None:
        raise ProviderError(candidate, ErrorKind.UNKNOWN, "response contained no answer text")
    return answer
