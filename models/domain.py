"""
models/domain.py
~~~~~~~~~~~~~~~~
In-memory domain objects passed between the service modules.

None of these are persisted; they live for the lifetime of the process.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum

from core.errors import ProviderError


@dataclass
class Document:
    """An uploaded PDF and, once extracted, its text."""

    filename: str
    content_type: str
    data: bytes = field(repr=False)
    text: str | None = None
    page_count: int | None = None
    pages_processed: int | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extracted(self) -> bool:
        return self.text is not None


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    pages_processed: int
    total_pages: int


@dataclass(frozen=True)
class SamplingParams:
    """Per-request generation settings; ``None`` fields are not sent."""

    temperature: float | None = 0.2
    top_p: float | None = None
    top_k: int | None = None
    max_tokens: int | None = None

    def as_payload(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of the single attempt made against one candidate."""

    candidate: str
    answer: str | None = None
    error: ProviderError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.answer)


@dataclass(frozen=True)
class CompletionResult:
    """
    Ordered record of every attempt made for one question.

    The gateway stops at the first success, so a successful result always has
    the successful attempt last and only failures before it.
    """

    attempts: tuple[AttemptOutcome, ...] = ()

    @property
    def success(self) -> bool:
        return bool(self.attempts) and self.attempts[-1].succeeded

    @property
    def candidate(self) -> str | None:
        return self.attempts[-1].candidate if self.success else None

    @property
    def answer(self) -> str | None:
        return self.attempts[-1].answer if self.success else None

    @property
    def failures(self) -> list[ProviderError]:
        return [a.error for a in self.attempts if a.error is not None]


class Sender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    sender: Sender
    text: str
    index: int
