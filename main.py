import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from api.routes import router
from core.config import (
    CANDIDATE_MODELS,
    COMPLETION_API_KEY,
    HOST,
    PORT,
    limiter,
)
from core.errors import ChatServiceError
from core.middleware import RequestBodyLimitMiddleware
from services.session_service import ChatSession

logger = logging.getLogger(__name__)

app = FastAPI(
    title="PDF Chat API",
    description="Ask questions about an uploaded PDF, answered by a chain of fallback models",
    version="1.0.0",
)

# Single conversation per process; injected into routes via get_chat_session.
app.state.chat_session = ChatSession()

# Request body cap, enforced for declared and chunked bodies alike.
# Added first so CORS wraps its 413 responses.
app.add_middleware(RequestBodyLimitMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate Limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ChatServiceError)
async def chat_service_error_handler(request: Request, exc: ChatServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(router)

if not COMPLETION_API_KEY:
    logger.warning("OPENAI_API_KEY is not set; /chat will answer with a configuration error")
logger.info("Candidate models (priority order): %s", ", ".join(CANDIDATE_MODELS) or "none")


if __name__ == "__main__":
    uvicorn.run("main:app", host=HOST, port=PORT)
