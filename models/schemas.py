"""
models/schemas.py
~~~~~~~~~~~~~~~~~
Pydantic request/response models for all API endpoints.
"""

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Payload for the /chat endpoint."""

    question: str = Field(..., description="The question to answer.")
    context: str | None = Field(
        default=None,
        description=(
            "Document text extracted by the client. When omitted, the text of "
            "the last uploaded PDF is used."
        ),
    )


class ChatTurn(BaseModel):
    role: str
    content: str = ""


class ApiChatRequest(BaseModel):
    """
    Payload for /api/chat: either a question (as for /chat) or a prompt the
    client already assembled as ``messages``.
    """

    question: str | None = None
    context: str | None = None
    messages: list[ChatTurn] | None = Field(
        default=None,
        description="System and user messages; the last user message is the prompt.",
    )


class ChatResponse(BaseModel):
    success: bool = True
    model: str
    answer: str


class AttemptDetail(BaseModel):
    candidate: str
    kind: str
    detail: str


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
    attempts: list[AttemptDetail] | None = None


class UploadResponse(BaseModel):
    message: str = "PDF uploaded and processed"
    filename: str
    page_count: int
    pages_processed: int
    characters: int


class ChatMessageOut(BaseModel):
    sender: str
    text: str
    index: int


class DocumentInfo(BaseModel):
    filename: str
    page_count: int | None = None
    pages_processed: int | None = None
    characters: int


class HistoryResponse(BaseModel):
    messages: list[ChatMessageOut] = Field(default_factory=list)
    loading: bool = False
    document: DocumentInfo | None = None
