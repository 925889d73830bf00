"""
core/middleware.py
~~~~~~~~~~~~~~~~~~
ASGI middleware capping the size of request bodies.

A declared ``Content-Length`` is checked up front.  Bodies sent without one
(chunked transfer) are buffered with a running byte count and rejected as
soon as the count passes the limit; otherwise the buffered messages are
replayed to the application unchanged.
"""

import logging

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

import core.config as config

logger = logging.getLogger(__name__)


class RequestBodyLimitMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Read at call time so the limit can be changed without rebuilding the app.
        limit = config.MAX_REQUEST_BYTES
        length = Headers(scope=scope).get("content-length")
        if length is not None and length.isdigit():
            if int(length) > limit:
                await self._reject(scope, receive, send, limit)
            else:
                await self.app(scope, receive, send)
            return

        buffered: list[Message] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > limit:
                logger.warning(
                    "%s %s: streamed body passed %d bytes", scope["method"], scope["path"], limit
                )
                await self._reject(scope, receive, send, limit)
                return
            more_body = message.get("more_body", False)

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    @staticmethod
    async def _reject(scope: Scope, receive: Receive, send: Send, limit: int) -> None:
        response = JSONResponse(
            status_code=413,
            content={
                "error": "Request body too large",
                "details": f"limit is {limit} bytes",
            },
        )
        await response(scope, receive, send)
