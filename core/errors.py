"""
core/errors.py
~~~~~~~~~~~~~~
Error taxonomy shared by the service layer and the HTTP layer.

Every error the service raises on purpose derives from
:class:`ChatServiceError`, which carries the HTTP status it should be
rendered with.  ``main.py`` installs one exception handler for the whole
family, so route handlers never build error responses by hand.
"""

from enum import Enum


class ChatServiceError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------
class ValidationError(ChatServiceError):
    """Missing/empty question, or a question asked with no document text."""

    status_code = 400


class EmptyContext(ValidationError):
    def __init__(self, details: str | None = None) -> None:
        super().__init__("No document text available. Upload a PDF first.", details)


class UnsupportedFormat(ChatServiceError):
    status_code = 400


class TooLarge(ChatServiceError):
    status_code = 413


class ParseError(ChatServiceError):
    status_code = 422


class SubmissionInProgress(ChatServiceError):
    status_code = 409

    def __init__(self) -> None:
        super().__init__("A question is already being answered. Wait for it to finish.")


# ---------------------------------------------------------------------------
# Server errors
# ---------------------------------------------------------------------------
class ConfigError(ChatServiceError):
    """Required configuration (e.g. the API credential) is absent."""

    status_code = 500


class ErrorKind(str, Enum):
    """Canonical classification of a failed candidate attempt."""

    AUTH_ERROR = "AuthError"
    RATE_LIMITED = "RateLimited"
    TIMEOUT = "Timeout"
    INVALID_REQUEST = "InvalidRequest"
    UNKNOWN = "UnknownProviderError"


class ProviderError(ChatServiceError):
    """One candidate's failure, already mapped onto :class:`ErrorKind`."""

    status_code = 502

    def __init__(self, candidate: str, kind: ErrorKind, detail: str) -> None:
        super().__init__(f"{candidate}: {kind.value}", detail)
        self.candidate = candidate
        self.kind = kind
        self.detail = detail

    def to_dict(self) -> dict:
        return {"candidate": self.candidate, "kind": self.kind.value, "detail": self.detail}


class AggregateFailure(ChatServiceError):
    """Every candidate in the fallback chain failed."""

    status_code = 500

    def __init__(self, failures: list[ProviderError]) -> None:
        self.failures = list(failures)
        details = "; ".join(
            f"{f.candidate} -> {f.kind.value}: {f.detail}" for f in self.failures
        )
        super().__init__("All candidate models failed to produce an answer.", details or None)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["attempts"] = [f.to_dict() for f in self.failures]
        return body
