from unittest.mock import patch

import httpx

from conftest import FakeBackend, completion_body


def test_upload_chat_and_history_flow(client, pdf_bytes):
    backend = FakeBackend({
        "primary": 429,
        "secondary": completion_body("The capital of France is Paris."),
    })

    # Upload a PDF and expect its text to be extracted
    resp = client.post("/upload", files={"file": ("france.pdf", pdf_bytes, "application/pdf")})
    assert resp.status_code == 200
    assert resp.json()["pages_processed"] == 1

    # Ask about it; the first candidate is rate limited, the second answers
    with patch("api.routes.build_gateway", side_effect=lambda: backend.gateway()):
        resp2 = client.post("/chat", json={"question": "What is the capital of France?"})
    assert resp2.status_code == 200
    data = resp2.json()
    assert data == {
        "success": True,
        "model": "secondary",
        "answer": "The capital of France is Paris.",
    }
    sent_prompt = backend.payloads[0]["messages"][-1]["content"]
    assert "The capital of France is Paris." in sent_prompt

    # A second question where every candidate fails still gets an assistant entry
    failing = FakeBackend({"primary": httpx.ReadTimeout, "secondary": 401})
    with patch("api.routes.build_gateway", side_effect=lambda: failing.gateway()):
        resp3 = client.post("/chat", json={"question": "Who wrote it?"})
    assert resp3.status_code == 500

    history = client.get("/chat/history").json()
    assert [m["sender"] for m in history["messages"]] == ["user", "assistant", "user", "assistant"]
    assert history["messages"][1]["text"] == "The capital of France is Paris."
    assert history["messages"][3]["text"].startswith("Error fetching answer.")
    assert history["document"]["filename"] == "france.pdf"

    # Clearing the log keeps the document, so the next question still works
    assert client.delete("/chat/history").status_code == 200
    with patch("api.routes.build_gateway", side_effect=lambda: backend.gateway()):
        resp4 = client.post("/chat", json={"question": "Again?"})
    assert resp4.status_code == 200
    assert [m["index"] for m in client.get("/chat/history").json()["messages"]] == [0, 1]
