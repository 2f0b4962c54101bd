"""Integration tests for the document processing endpoint."""

import json
import uuid

from fastapi.testclient import TestClient

from notra.services import pipeline_service
from notra.services.ingest_service import ExtractedText

GENERATED = {
    "title": "Refund Rules",
    "summaryForChat": "When and how students can get a refund.",
    "notes": [
        {"heading": "Refund Policy", "content": "A refund is available in the first week.", "bullets": ["Week one"]},
        {"heading": "Forms", "content": "Use the registrar form."},
    ],
    "quizzes": [{"question": "When?", "options": [{"text": "Week one"}, {"text": "Never"}], "correctIndex": 0}],
    "flashcards": [{"front": "Refund window", "back": "First week"}],
}


def _upload(client: TestClient, name: str, body: bytes, user_id: str = "uploader", plan: str = "free"):
    return client.post(
        "/process/file",
        files={"file": (name, body, "text/plain")},
        data={"user_plan": plan, "user_id": user_id},
    )


def _unique_text() -> bytes:
    return f"Refund policy handout {uuid.uuid4()}.\nRefunds are available in week one.".encode()


def test_upload_creates_session(client: TestClient, fake_llm, app) -> None:
    """Test that a text upload is turned into a stored session."""
    fake_llm.reply = json.dumps(GENERATED)

    response = _upload(client, "handout.txt", _unique_text())

    assert response.status_code == 200
    data = response.json()
    assert data["sessionId"].startswith("session-")
    assert data["type"] == "file"
    assert data["title"] == "Refund Rules"
    assert data["deduplicated"] is False
    assert app.state.usage_meter.remaining("uploader", "file", "free") == 14

    session = client.get(f"/sessions/{data['sessionId']}").json()
    assert [n["heading"] for n in session["notes"]] == ["Refund Policy", "Forms"]
    assert session["notes"][0]["id"] == "note-1"
    assert session["summaryForChat"] == GENERATED["summaryForChat"]
    assert session["quizzes"][0]["correctIndex"] == 0


def test_identical_upload_is_deduplicated(client: TestClient, fake_llm, app) -> None:
    """Test that re-uploading the same text reuses the session without generating again."""
    fake_llm.reply = json.dumps(GENERATED)
    body = _unique_text()

    first = _upload(client, "handout.txt", body).json()
    second = _upload(client, "copy.txt", body).json()

    assert second["sessionId"] == first["sessionId"]
    assert second["deduplicated"] is True
    assert len(fake_llm.calls) == 1
    assert app.state.usage_meter.remaining("uploader", "file", "free") == 14


def test_generic_generated_title_uses_filename(client: TestClient, fake_llm) -> None:
    """Test that a placeholder title is replaced by the upload name."""
    fake_llm.reply = json.dumps({**GENERATED, "title": "Untitled"})

    data = _upload(client, "Econ 101 Refunds.txt", _unique_text()).json()

    assert data["title"] == "Econ 101 Refunds"


def test_unsupported_file_type(client: TestClient) -> None:
    """Test that unknown extensions are rejected."""
    response = _upload(client, "movie.exe", b"binary")

    assert response.status_code == 400
    assert "Unsupported" in response.json()["detail"]


def test_empty_document(client: TestClient, fake_llm) -> None:
    """Test that a file with no text is rejected before generation."""
    response = _upload(client, "blank.txt", b"   \n  ")

    assert response.status_code == 400
    assert fake_llm.calls == []


def test_too_many_pages(client: TestClient, monkeypatch) -> None:
    """Test that files over the plan's page limit are refused."""

    def fake_extract(filename, data):
        return ExtractedText(text="long document", source="pdf", pages=50, meta={"original_name": filename})

    monkeypatch.setattr(pipeline_service, "extract_text", fake_extract)

    response = _upload(client, "thick.pdf", b"%PDF")

    assert response.status_code == 413
    assert response.json()["detail"]["limit"] == 20


def test_monthly_upload_quota(client: TestClient, app, fake_llm) -> None:
    """Test that a caller with no uploads left gets 429 without generation."""
    for _ in range(15):
        app.state.usage_meter.check_and_record("busy", "file", "free")

    response = _upload(client, "handout.txt", _unique_text(), user_id="busy")

    assert response.status_code == 429
    assert fake_llm.calls == []


def test_generation_failure(client: TestClient, fake_llm) -> None:
    """Test that unusable model output maps to 503."""
    fake_llm.reply = "I cannot do that."

    response = _upload(client, "handout.txt", _unique_text())

    assert response.status_code == 503
    assert "invalid JSON" in response.json()["detail"]["error"]
