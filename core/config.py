"""
core/config.py
~~~~~~~~~~~~~~
Centralised configuration: environment variables, logging setup, and the
SlowAPI rate-limiter instance that the rest of the application imports.
"""

import logging
import os

from dotenv import load_dotenv
from slowapi import Limiter
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------------
# Load .env (no-op if the file is absent)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _optional_float(name: str, default: str = "") -> float | None:
    raw = os.getenv(name, default).strip()
    return float(raw) if raw else None


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


def _csv(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


# ---------------------------------------------------------------------------
# Completion backend
# ---------------------------------------------------------------------------
# Checked by ``build_gateway`` on every request; a missing key becomes a
# ConfigError there rather than a startup failure.
COMPLETION_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None

COMPLETION_BASE_URL: str = os.getenv(
    "COMPLETION_BASE_URL", "https://openrouter.ai/api/v1"
)

# Priority order: the first model that answers wins.
CANDIDATE_MODELS: list[str] = _csv(
    "CANDIDATE_MODELS",
    "openai/gpt-5,openai/gpt-4o-mini,google/gemini-2.0-flash-001",
)

REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))  # seconds, per attempt

# Sampling parameters, sent unchanged to every candidate.
TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.2"))
# An empty TOP_P disables it.
TOP_P: float | None = _optional_float("TOP_P", "0.95")
TOP_K: int | None = _optional_int("TOP_K")
MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "1024"))

HTTP_REFERER: str = os.getenv("HTTP_REFERER", "http://localhost:5173/")
APP_TITLE: str = os.getenv("APP_TITLE", "PDF Chatbot")

# ---------------------------------------------------------------------------
# Document limits
# ---------------------------------------------------------------------------
MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
# Leaves room for multipart framing around a maximum-size upload.
MAX_REQUEST_BYTES: int = int(os.getenv("MAX_REQUEST_BYTES", str(11 * 1024 * 1024)))
MAX_PAGES: int = int(os.getenv("MAX_PAGES", "50"))
CONTEXT_CHAR_LIMIT: int = int(os.getenv("CONTEXT_CHAR_LIMIT", "12000"))

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "5000"))

CHAT_RATE_LIMIT: str = os.getenv("CHAT_RATE_LIMIT", "60/15 minutes")
UPLOAD_RATE_LIMIT: str = os.getenv("UPLOAD_RATE_LIMIT", "10/15 minutes")

# ---------------------------------------------------------------------------
# Rate-limiter (shared singleton imported by api/routes.py and main.py)
# ---------------------------------------------------------------------------
limiter: Limiter = Limiter(key_func=get_remote_address)
