"""
services/prompt_service.py
~~~~~~~~~~~~~~~~~~~~~~~~~~
Builds the bounded prompt sent to the completion backend.

The document text is cut to a fixed number of leading characters; the
question is always appended last and is never cut.
"""

from dataclasses import dataclass

from core.config import CONTEXT_CHAR_LIMIT
from core.errors import EmptyContext, ValidationError

SYSTEM_MESSAGE = "You are a helpful assistant."

NOT_FOUND_ANSWER = "I could not find the answer in the document."

PROMPT_TEMPLATE = (
    "You are an assistant that answers questions using ONLY the PDF content below.\n"
    'If the answer is not in the content, reply exactly: "{not_found}"\n\n'
    "PDF Content:\n"
    "{context}\n\n"
    "Question: {question}"
)

_QUESTION_MARKER = "Question:"


@dataclass(frozen=True)
class AssembledPrompt:
    prompt: str
    context: str
    question: str
    truncated: bool
    system: str = SYSTEM_MESSAGE

    @property
    def messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.prompt},
        ]


def truncate_context(text: str, cap: int = CONTEXT_CHAR_LIMIT) -> str:
    """Keep the first *cap* characters of *text*."""
    if cap < 0:
        raise ValueError("cap must be non-negative")
    return text[:cap]


def build_prompt(text: str, question: str, cap: int = CONTEXT_CHAR_LIMIT) -> AssembledPrompt:
    """
    Embed the (truncated) document text and the question in the prompt template.

    Raises
    ------
    ValidationError
        If *question* is empty after trimming.
    EmptyContext
        If *text* is empty or whitespace only.
    """
    question = (question or "").strip()
    if not question:
        raise ValidationError("Question must not be empty")
    if not text or not text.strip():
        raise EmptyContext()

    context = truncate_context(text, cap)
    prompt = PROMPT_TEMPLATE.format(
        not_found=NOT_FOUND_ANSWER, context=context, question=question
    )
    return AssembledPrompt(
        prompt=prompt,
        context=context,
        question=question,
        truncated=len(text) > cap,
    )


def prompt_from_messages(messages: list[dict[str, str]]) -> AssembledPrompt:
    """
    Accept a prompt the client already assembled as chat messages.

    The last ``user`` message is sent as the prompt and the ``system``
    messages (joined) as the system instruction.  The question recorded in
    the session log is the text after the final ``Question:`` marker, or the
    whole prompt when there is none.

    Raises
    ------
    ValidationError
        If there is no user message or it is empty after trimming.
    """
    user = [m.get("content") or "" for m in messages if m.get("role") == "user"]
    prompt = user[-1].strip() if user else ""
    if not prompt:
        raise ValidationError("Prompt must contain a non-empty user message")

    system = "\n".join(
        m["content"] for m in messages if m.get("role") == "system" and m.get("content")
    )
    _, marker, tail = prompt.rpartition(_QUESTION_MARKER)
    question = tail.strip() if marker and tail.strip() else prompt
    return AssembledPrompt(
        prompt=prompt,
        context="",
        question=question,
        truncated=False,
        system=system or SYSTEM_MESSAGE,
    )
