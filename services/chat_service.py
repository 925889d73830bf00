"""
services/chat_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Answers one question end to end: validate, assemble the prompt, run the
completion gateway, and record both sides of the exchange in the session.

Validation and configuration problems are raised before the session log is
touched and before any network call is made.  Once a question is accepted
the log always receives exactly one assistant message for it.
"""

import logging
from typing import Callable

from core.config import CONTEXT_CHAR_LIMIT
from models.domain import CompletionResult, Sender
from services.completion_service import CompletionGateway
from services.prompt_service import AssembledPrompt, build_prompt, prompt_from_messages
from services.session_service import ChatSession

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Error fetching answer. Try again."

GatewayFactory = Callable[[], CompletionGateway]


def failure_message(result: CompletionResult) -> str:
    """Human-readable explanation for an exhausted fallback chain."""
    kinds = ", ".join(dict.fromkeys(f.kind.value for f in result.failures))
    return f"{FAILURE_MESSAGE} ({kinds})" if kinds else FAILURE_MESSAGE


def _run(
    session: ChatSession, prompt: AssembledPrompt, gateway_factory: GatewayFactory
) -> CompletionResult:
    with gateway_factory() as gateway, session.in_flight():
        session.append(Sender.USER, prompt.question)
        try:
            result = gateway.complete(prompt)
        except Exception:
            session.append(Sender.ASSISTANT, FAILURE_MESSAGE)
            raise
        if result.success:
            session.append(Sender.ASSISTANT, result.answer)
        else:
            session.append(Sender.ASSISTANT, failure_message(result))
    return result


def ask(
    session: ChatSession,
    question: str,
    gateway_factory: GatewayFactory,
    context: str | None = None,
    cap: int = CONTEXT_CHAR_LIMIT,
) -> CompletionResult:
    """
    Answer *question* from the session's document (or an explicit *context*).

    Parameters
    ----------
    session:
        Conversation state; receives the user message and the assistant reply.
    question:
        Free-form question text (typed or transcribed).
    gateway_factory:
        Called once the request is valid; may raise ``ConfigError``.
    context:
        Text extracted by the client.  When omitted or empty the session document's
        text is used.
    cap:
        Character ceiling for the embedded document text.

    Returns
    -------
    CompletionResult
        Successful or exhausted; inspect ``result.success``.
    """
    text = context or session.document_text
    prompt = build_prompt(text, question, cap=cap)
    result = _run(session, prompt, gateway_factory)
    if prompt.truncated:
        logger.info("Context truncated to %d characters", cap)
    return result


def ask_assembled(
    session: ChatSession,
    messages: list[dict[str, str]],
    gateway_factory: GatewayFactory,
) -> CompletionResult:
    """Send a client-assembled message list through the same fallback chain."""
    prompt = prompt_from_messages(messages)
    return _run(session, prompt, gateway_factory)
