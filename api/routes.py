"""
api/routes.py
~~~~~~~~~~~~~
FastAPI ``APIRouter`` containing all application endpoints.

Route handlers are intentionally thin: they validate HTTP concerns and
delegate all business logic to the service layer.  Service errors derive from
``ChatServiceError`` and are rendered by the handler installed in ``main.py``.
"""

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile

from core.config import CHAT_RATE_LIMIT, UPLOAD_RATE_LIMIT, limiter
from core.errors import AggregateFailure, ValidationError
from models.domain import CompletionResult
from models.schemas import (
    ApiChatRequest,
    ChatMessageOut,
    ChatRequest,
    ChatResponse,
    DocumentInfo,
    ErrorResponse,
    HistoryResponse,
    UploadResponse,
)
from services.chat_service import ask, ask_assembled
from services.completion_service import build_gateway
from services.document_service import load_document
from services.session_service import ChatSession

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_chat_session(request: Request) -> ChatSession:
    """Dependency returning the session owned by the running app."""
    return request.app.state.chat_session


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@router.get("/healthz", tags=["health"])
def health_check():
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/readyz", tags=["health"])
def readiness_check():
    """Readiness probe."""
    return {"status": "ready"}


@router.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------
@router.post("/upload", tags=["documents"], response_model=UploadResponse)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    session: ChatSession = Depends(get_chat_session),
):
    """Upload a PDF, extract its text, and make it the session's document."""
    data = await file.read()
    document = load_document(data, file.content_type, file.filename or "document.pdf")
    session.attach_document(document)
    logger.info(
        "Upload %s: read %d of %d page(s)",
        document.filename, document.pages_processed, document.page_count,
    )
    return UploadResponse(
        filename=document.filename,
        page_count=document.page_count,
        pages_processed=document.pages_processed,
        characters=len(document.text),
    )


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------
def _respond(result: CompletionResult) -> ChatResponse:
    if not result.success:
        raise AggregateFailure(result.failures)
    return ChatResponse(model=result.candidate, answer=result.answer)


@router.post("/chat", tags=["qa"], response_model=ChatResponse, responses=_ERROR_RESPONSES)
@limiter.limit(CHAT_RATE_LIMIT)
def chat(
    request: Request,
    data: ChatRequest,
    session: ChatSession = Depends(get_chat_session),
):
    """Answer a question about the uploaded document."""
    result = ask(session, data.question, build_gateway, context=data.context)
    return _respond(result)


@router.post("/api/chat", tags=["qa"], response_model=ChatResponse, responses=_ERROR_RESPONSES)
@limiter.limit(CHAT_RATE_LIMIT)
def chat_legacy(
    request: Request,
    data: ApiChatRequest,
    session: ChatSession = Depends(get_chat_session),
):
    """
    Chat endpoint at the original path.

    Accepts the /chat payload, or a fully assembled prompt as ``messages``
    (system + user), which is forwarded through the same fallback chain.
    """
    if data.messages is not None:
        messages = [turn.model_dump() for turn in data.messages]
        result = ask_assembled(session, messages, build_gateway)
    elif data.question is not None:
        result = ask(session, data.question, build_gateway, context=data.context)
    else:
        raise ValidationError("Request must include a question or messages")
    return _respond(result)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------
@router.get("/chat/history", tags=["qa"], response_model=HistoryResponse)
def chat_history(session: ChatSession = Depends(get_chat_session)):
    """Return the message log in order, plus the loading flag."""
    document = session.document
    info = None
    if document is not None and document.extracted:
        info = DocumentInfo(
            filename=document.filename,
            page_count=document.page_count,
            pages_processed=document.pages_processed,
            characters=len(document.text),
        )
    return HistoryResponse(
        messages=[
            ChatMessageOut(sender=m.sender.value, text=m.text, index=m.index)
            for m in session.messages
        ],
        loading=session.loading,
        document=info,
    )


@router.delete("/chat/history", tags=["qa"])
def clear_history(session: ChatSession = Depends(get_chat_session)):
    """Empty the message log; the uploaded document is kept."""
    session.clear()
    return {"message": "Chat history cleared"}
