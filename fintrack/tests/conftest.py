"""Shared fixtures for fintrack tests."""

import json

import pytest
from fastapi.testclient import TestClient

from fintrack.db.sqlite import Database, get_database
from fintrack.errors import ConfigurationError
from fintrack.main import app, get_extraction_client
from fintrack.receipts.llm_client import ExtractionClient

ACME_RECEIPT_JSON = json.dumps(
    {
        "amount": 42.50,
        "date": "2024-03-15",
        "merchant": "Acme Store",
        "category": "Shopping",
        "type": "expense",
        "description": "Household supplies",
        "confidence": 0.92,
    }
)


class FakeExtractionClient(ExtractionClient):
    """Extraction client that returns a canned response and records calls."""

    def __init__(self, response: str = ACME_RECEIPT_JSON, error: Exception | None = None, configured: bool = True):
        self.response = response
        self.error = error
        self.configured = configured
        self.calls: list[dict] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("Missing GEMINI_API_KEY")

    async def extract_from_text(self, prompt: str, text: str) -> str:
        self.calls.append({"kind": "text", "prompt": prompt, "text": text})
        return self._respond()

    async def extract_from_image(self, prompt: str, image_b64: str, mime_type: str) -> str:
        self.calls.append({"kind": "image", "prompt": prompt, "image_b64": image_b64, "mime_type": mime_type})
        return self._respond()

    def _respond(self) -> str:
        if self.error:
            raise self.error
        return self.response


def make_pdf(*lines: str) -> bytes:
    """Build a minimal one-page PDF with a Helvetica text layer."""
    text_ops = []
    y = 720
    for line in lines:
        escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        text_ops.append(f"BT /F1 12 Tf 72 {y} Td ({escaped}) Tj ET")
        y -= 20
    stream = "\n".join(text_ops).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
    ]

    pdf = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(pdf)
    pdf += f"xref\n0 {len(objects) + 1}\n".encode()
    pdf += b"0000000000 65535 f \n"
    for offset in offsets:
        pdf += f"{offset:010d} 00000 n \n".encode()
    pdf += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode()
    return pdf


@pytest.fixture
def database(tmp_path):
    """A fresh SQLite database per test."""
    return Database(tmp_path / "fintrack_test.db")


@pytest.fixture
def make_fake_client():
    """Factory for fake model clients with a chosen response or error."""
    return FakeExtractionClient


@pytest.fixture
def fake_client():
    return FakeExtractionClient()


@pytest.fixture
def api_client(database, fake_client):
    """TestClient wired to the test database and the fake model client."""
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_extraction_client] = lambda: fake_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def receipt_pdf() -> bytes:
    return make_pdf("Acme Store", "Total: $42.50, Date: 2024-03-15, Merchant: Acme Store")


@pytest.fixture
def blank_pdf() -> bytes:
    """A valid PDF page with no text layer, like a scanned receipt."""
    return make_pdf()
