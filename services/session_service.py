"""
services/session_service.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~
In-memory chat session: the uploaded document, the ordered message log, and
the "question in flight" flag.

The message log is append-only and can only be cleared as a whole.  All
mutations happen under a ``threading.Lock`` because FastAPI runs sync route
handlers in a threadpool.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from core.errors import SubmissionInProgress
from models.domain import ChatMessage, Document, Sender

logger = logging.getLogger(__name__)


class ChatSession:
    """One user's conversation state for the lifetime of the process."""

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []
        self._lock = threading.Lock()
        self._loading = False
        self._document: Document | None = None

    # -- document ----------------------------------------------------------
    @property
    def document(self) -> Document | None:
        return self._document

    @property
    def document_text(self) -> str:
        if self._document is None:
            return ""
        return self._document.text or ""

    def attach_document(self, document: Document) -> None:
        """Replace the current document with a newly uploaded one."""
        with self._lock:
            self._document = document
        logger.info("Document attached: %s", document.filename)

    # -- messages ----------------------------------------------------------
    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        with self._lock:
            return tuple(self._messages)

    def append(self, sender: Sender, text: str) -> ChatMessage:
        """Add a message at the end of the log and return it."""
        with self._lock:
            message = ChatMessage(sender=Sender(sender), text=text, index=len(self._messages))
            self._messages.append(message)
            return message

    def clear(self) -> None:
        with self._lock:
            self._messages = []

    # -- loading flag ------------------------------------------------------
    @property
    def loading(self) -> bool:
        return self._loading

    def set_loading(self, value: bool) -> None:
        """
        Mark a question as in flight (``True``) or finished (``False``).

        Raises
        ------
        SubmissionInProgress
            If *value* is ``True`` while another question is already in flight.
        """
        with self._lock:
            if value and self._loading:
                raise SubmissionInProgress()
            self._loading = value

    @contextmanager
    def in_flight(self) -> Iterator["ChatSession"]:
        self.set_loading(True)
        try:
            yield self
        finally:
            self.set_loading(False)
