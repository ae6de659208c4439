import base64
from io import BytesIO

import pytest
from docx import Document
from fastapi.testclient import TestClient

from resume_structurer.config import Settings, get_settings
from resume_structurer.core import pipeline
from resume_structurer.main import app

client = TestClient(app)

RESUME_TXT = b"""John Doe
john@example.com

Experience
Acme Corp \xe2\x80\x94 Engineer (2020\xe2\x80\x93Present)
- Built things
"""

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@pytest.fixture
def small_upload_limit():
    app.dependency_overrides[get_settings] = lambda: Settings(max_upload_bytes=16)
    yield
    app.dependency_overrides.pop(get_settings, None)


def test_health():
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["status"] == "running"


class TestParseUpload:
    def test_txt(self):
        r = client.post("/parse", files={"file": ("resume.txt", RESUME_TXT, "text/plain")})
        assert r.status_code == 200
        data = r.json()

        assert data["parsed_text"].startswith("John Doe\njohn@example.com")
        structured = data["structured"]
        assert structured["profile"]["name"] == "John Doe"
        assert structured["profile"]["email"] == "john@example.com"
        assert structured["work_experiences"] == [
            {
                "company": "Acme Corp",
                "job_title": "Engineer",
                "date": "2020–Present",
                "descriptions": ["Built things"],
            }
        ]
        # Every part of the record is present even when empty
        assert structured["educations"] == []
        assert structured["skills"] == {"featured_skills": [], "descriptions": []}
        assert structured["custom"] == {"descriptions": []}

    def test_docx(self):
        doc = Document()
        doc.add_paragraph("Jane Doe")
        doc.add_paragraph("jane.doe@example.com")
        doc.add_paragraph("(555) 123-4567")
        doc.add_paragraph("Skills: Python, FastAPI")
        buf = BytesIO()
        doc.save(buf)

        r = client.post("/parse", files={"file": ("resume.docx", buf.getvalue(), DOCX_MIME)})
        assert r.status_code == 200
        data = r.json()
        assert data["structured"]["profile"]["email"] == "jane.doe@example.com"
        assert data["structured"]["profile"]["phone"] == "(555) 123-4567"
        assert data["structured"]["skills"]["featured_skills"] == ["Python", "FastAPI"]
        assert data["parsed_text"].startswith("Jane Doe\n\n")

    def test_empty_file(self):
        r = client.post("/parse", files={"file": ("resume.txt", b"", "text/plain")})
        assert r.status_code == 400

    def test_unsupported_type(self):
        r = client.post("/parse", files={"file": ("resume.rtf", b"{\\rtf1 hi}", "application/rtf")})
        assert r.status_code == 415

    def test_corrupt_docx(self):
        r = client.post("/parse", files={"file": ("resume.docx", b"not a zip", DOCX_MIME)})
        assert r.status_code == 500
        assert "DOCX" in r.json()["detail"]

    def test_pdf_without_text(self, monkeypatch):
        monkeypatch.setattr(pipeline, "extract_pdf_text_items", lambda content: ([], ""))
        r = client.post("/parse", files={"file": ("scan.pdf", b"%PDF-1.4", "application/pdf")})
        assert r.status_code == 422

    def test_too_large(self, small_upload_limit):
        r = client.post("/parse", files={"file": ("resume.txt", RESUME_TXT, "text/plain")})
        assert r.status_code == 413


class TestParseJson:
    def test_text(self):
        r = client.post("/parse/json", json={"text": RESUME_TXT.decode("utf-8")})
        assert r.status_code == 200
        assert r.json()["structured"]["profile"]["name"] == "John Doe"

    def test_base64_file(self):
        payload = {"file": base64.b64encode(RESUME_TXT).decode("ascii"), "filename": "resume.txt"}
        r = client.post("/parse/json", json=payload)
        assert r.status_code == 200
        assert r.json()["structured"]["work_experiences"][0]["company"] == "Acme Corp"

    def test_base64_file_by_mime_type(self):
        payload = {"file": base64.b64encode(RESUME_TXT).decode("ascii"), "mime_type": "text/plain"}
        assert client.post("/parse/json", json=payload).status_code == 200

    def test_invalid_base64(self):
        r = client.post("/parse/json", json={"file": "%%% not base64 %%%", "filename": "resume.pdf"})
        assert r.status_code == 400

    def test_missing_payload(self):
        assert client.post("/parse/json", json={}).status_code == 400
        assert client.post("/parse/json", json={"text": "   "}).status_code == 400

    def test_unknown_file_type(self):
        payload = {"file": base64.b64encode(b"hello").decode("ascii")}
        assert client.post("/parse/json", json=payload).status_code == 415

    def test_too_large(self, small_upload_limit):
        r = client.post("/parse/json", json={"text": "x" * 100})
        assert r.status_code == 413
