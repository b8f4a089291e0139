import io
import logging
import sys
from pathlib import Path

import pytest
from fpdf import FPDF

sys.path.append(str(Path(__file__).resolve().parents[1]))

from pdf_handler import PDFExtractionError
from persona import create_app
from persona.config import TestConfig
from persona.services.profile_extraction import ProfileExtractionError, ProfileExtractionResult
from persona.models import CharacterProfile
from persona.uploads import routes as upload_routes
from persona.uploads.forms import MAX_PDF_SIZE


@pytest.fixture
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


def _upload(client, data, filename="doc.pdf", mimetype="application/pdf"):
    return client.post(
        "/upload-pdf",
        data={"pdf": (io.BytesIO(data), filename, mimetype)},
        content_type="multipart/form-data",
    )


@pytest.fixture
def fake_pipeline(monkeypatch):
    calls = {"extract": 0}

    def fake_extract(data):
        calls["extract"] += 1
        calls["size"] = len(data)
        return "Name: Alex Kim"

    def fake_profile(text, generator):
        return ProfileExtractionResult(profile=CharacterProfile.create("Alex Kim"), used_fallback=False)

    monkeypatch.setattr(upload_routes, "extract_text_from_pdf", fake_extract)
    monkeypatch.setattr(upload_routes, "extract_character_profile", fake_profile)
    return calls


def test_upload_requires_file(client, fake_pipeline):
    response = client.post("/upload-pdf", data={}, content_type="multipart/form-data")

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert fake_pipeline["extract"] == 0


def test_upload_rejects_non_pdf_mime_type(client, fake_pipeline):
    response = _upload(client, b"%PDF-1.4 pretend", filename="doc.pdf", mimetype="text/plain")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Only PDF files can be uploaded."
    assert fake_pipeline["extract"] == 0


def test_upload_accepts_exactly_the_size_limit(client, fake_pipeline):
    response = _upload(client, b"0" * MAX_PDF_SIZE)

    assert response.status_code == 200
    assert fake_pipeline["size"] == MAX_PDF_SIZE


def test_upload_rejects_one_byte_over_the_limit(client, fake_pipeline):
    response = _upload(client, b"0" * (MAX_PDF_SIZE + 1))

    assert response.status_code == 400
    assert fake_pipeline["extract"] == 0


def test_upload_success_shape(client, fake_pipeline):
    response = _upload(client, b"%PDF-1.4 pretend")

    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert data["characterInfo"]["name"] == "Alex Kim"
    assert data["rawText"] == "Name: Alex Kim"
    assert data["usedFallback"] is False


def test_upload_blank_text_is_rejected(client, monkeypatch):
    monkeypatch.setattr(upload_routes, "extract_text_from_pdf", lambda data: "  \n ")

    response = _upload(client, b"%PDF-1.4 pretend")

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_upload_unreadable_pdf_returns_500(client, monkeypatch):
    def fail(data):
        raise PDFExtractionError("Unable to read the PDF file.")

    monkeypatch.setattr(upload_routes, "extract_text_from_pdf", fail)

    response = _upload(client, b"%PDF-1.4 broken")

    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "Unable to read the PDF file."}


def test_upload_profile_failure_returns_500(client, monkeypatch):
    def fail(text, generator):
        raise ProfileExtractionError("The language model is unavailable.")

    monkeypatch.setattr(upload_routes, "extract_text_from_pdf", lambda data: "Some text")
    monkeypatch.setattr(upload_routes, "extract_character_profile", fail)

    response = _upload(client, b"%PDF-1.4 pretend")

    assert response.status_code == 500
    assert response.get_json()["error"] == "The language model is unavailable."


def test_upload_real_pdf_without_language_model(client):
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=12)
    pdf.multi_cell(0, 10, "Name: Alex Kim", new_x="LMARGIN", new_y="NEXT")
    pdf.multi_cell(0, 10, "Occupation: pilot", new_x="LMARGIN", new_y="NEXT")

    response = _upload(client, bytes(pdf.output()))

    assert response.status_code == 200
    data = response.get_json()
    assert data["characterInfo"]["name"] == "Alex Kim"
    assert data["characterInfo"]["background"]["occupation"] == "pilot"
    assert data["usedFallback"] is True
    assert "Name: Alex Kim" in data["rawText"]


def test_upload_capabilities(client):
    response = client.get("/upload-pdf")

    assert response.get_json() == {
        "maxFileSize": "10MB",
        "allowedTypes": ["application/pdf"],
        "description": "Extracts a character profile from an uploaded PDF document.",
    }


def test_upload_logs_extraction_prompt_at_debug(client, monkeypatch, caplog):
    def fake_profile(text, generator):
        return ProfileExtractionResult(
            profile=CharacterProfile.create("Alex Kim"), used_fallback=False, prompt="Extract the person: Alex"
        )

    monkeypatch.setattr(upload_routes, "extract_text_from_pdf", lambda data: "Name: Alex Kim")
    monkeypatch.setattr(upload_routes, "extract_character_profile", fake_profile)
    caplog.set_level(logging.DEBUG, logger="persona")

    response = _upload(client, b"%PDF-1.4 pretend")

    assert response.status_code == 200
    assert "Character extraction prompt: Extract the person: Alex" in caplog.text
