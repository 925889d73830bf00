import json

import httpx
import pytest
from fastapi.testclient import TestClient

from api.routes import get_chat_session
from core.config import limiter
from main import app
from models.domain import SamplingParams
from services.completion_service import CompletionGateway
from services.session_service import ChatSession


def build_pdf(pages) -> bytes:
    """Return bytes of a minimal but valid PDF with one text line per page.

    The PDF is built from raw bytes with one content stream per page so that
    pypdf can extract the text in page order.
    """
    page_texts = [
        text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)").encode("latin-1")
        for text in pages
    ]

    # 1 catalog, 2 page tree, 3 font, then (page, content) pairs
    first_page = 4
    page_ids = [first_page + 2 * i for i in range(len(page_texts))]

    raw = {
        1: b"<</Type /Catalog /Pages 2 0 R>>",
        2: (
            b"<</Type /Pages /Kids ["
            + b" ".join(str(pid).encode() + b" 0 R" for pid in page_ids)
            + b"] /Count "
            + str(len(page_ids)).encode()
            + b">>"
        ),
        3: (
            b"<</Type /Font /Subtype /Type1 /BaseFont /Helvetica"
            b" /Encoding /WinAnsiEncoding>>"
        ),
    }
    for pid, body_text in zip(page_ids, page_texts):
        stream_content = b"BT\n/F1 12 Tf\n50 750 Td\n(" + body_text + b") Tj\nET\n"
        raw[pid] = (
            b"<</Type /Page /Parent 2 0 R /MediaBox [0 0 612 792]"
            b" /Contents " + str(pid + 1).encode() + b" 0 R"
            b" /Resources <</Font <</F1 3 0 R>>>>>>"
        )
        raw[pid + 1] = (
            b"<</Length "
            + str(len(stream_content)).encode()
            + b">>\nstream\n"
            + stream_content
            + b"\nendstream"
        )

    count = len(raw)
    header = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"
    buf = bytearray(header)
    offsets: dict[int, int] = {}
    for n in range(1, count + 1):
        offsets[n] = len(buf)
        buf += str(n).encode() + b" 0 obj\n" + raw[n] + b"\nendobj\n"

    xref_offset = len(buf)
    xref = b"xref\n0 " + str(count + 1).encode() + b"\n" + b"0000000000 65535 f \n"
    for n in range(1, count + 1):
        xref += ("%010d 00000 n \n" % offsets[n]).encode()

    trailer = (
        b"trailer\n<</Size " + str(count + 1).encode() + b" /Root 1 0 R>>\nstartxref\n"
        + str(xref_offset).encode()
        + b"\n%%EOF\n"
    )
    return bytes(buf) + xref + trailer


def completion_body(text: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


class FakeBackend:
    """Deterministic stand-in for the completion API, keyed by model name.

    Each behaviour is either a dict (returned as a 200 JSON body), an int
    (returned as that HTTP status with an error payload), or an exception
    class from httpx (raised as a transport failure).
    """

    def __init__(self, behaviours: dict):
        self.behaviours = behaviours
        self.calls: list[str] = []
        self.payloads: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        model = payload["model"]
        self.calls.append(model)
        self.payloads.append(payload)
        behaviour = self.behaviours[model]
        if isinstance(behaviour, type) and issubclass(behaviour, Exception):
            raise behaviour(f"{model} failed", request=request)
        if isinstance(behaviour, int):
            return httpx.Response(
                behaviour, json={"error": {"message": f"{model} said {behaviour}", "code": behaviour}}
            )
        return httpx.Response(200, json=behaviour)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def gateway(self, candidates=None, **kwargs) -> CompletionGateway:
        client = httpx.Client(base_url="https://completions.test/api/v1", transport=self.transport)
        kwargs.setdefault("params", SamplingParams(temperature=0.2, top_p=0.9, max_tokens=256))
        return CompletionGateway(
            client,
            candidates or list(self.behaviours),
            "test-key",
            **kwargs,
        )


@pytest.fixture
def pdf_bytes():
    return build_pdf(["The capital of France is Paris."])


@pytest.fixture
def chat_session():
    return ChatSession()


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def client(chat_session):
    """Test client whose routes share the ``chat_session`` fixture."""
    app.dependency_overrides[get_chat_session] = lambda: chat_session
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
