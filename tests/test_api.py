"""Tests for the FastAPI REST endpoints."""

import io
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image, UnidentifiedImageError

from dzocr import __version__
from dzocr.api.app import Components, app
from dzocr.approval.workflow import ApprovalQueue
from dzocr.correction.pipeline import TextCorrector
from dzocr.extraction.legal_entities import LegalEntityExtractor
from dzocr.language.detector import LanguageDetector
from dzocr.mapping.mapper import build_mapper
from dzocr.ocr.document_processor import DocumentResult
from dzocr.utils.config import AppConfig, CorrectionConfig, MappingConfig
from dzocr.validation.review import MappingReviewer
from dzocr.validation.rules_engine import RulesEngine


@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def fresh_queue(monkeypatch: pytest.MonkeyPatch) -> ApprovalQueue:
    """Give every test an empty approval queue."""
    queue = ApprovalQueue()
    monkeypatch.setattr("dzocr.api.app.approval_queue", queue)
    return queue


def _make_test_image_bytes() -> bytes:
    """Create a minimal PNG image as bytes."""
    buf = io.BytesIO()
    Image.fromarray(np.zeros((100, 200, 3), dtype=np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def _make_doc_result(text: str) -> DocumentResult:
    return DocumentResult(
        source_file="decret.png",
        page_count=1,
        pages=[],
        combined_text=text,
        raw_text=text,
        language=LanguageDetector().detect(text),
    )


def _components(processor: MagicMock) -> Components:
    """Real extraction components around a mocked document processor."""
    config = AppConfig(
        correction=CorrectionConfig(rules_path="/nonexistent.yaml"),
        mapping=MappingConfig(forms_path="/nonexistent/forms.yaml"),
    )
    corrector = TextCorrector(config.correction, config.language)
    return Components(
        config=config,
        processor=processor,
        corrector=corrector,
        extractor=LegalEntityExtractor(detector=corrector.detector),
        mapper=build_mapper(config.mapping),
        rules_engine=RulesEngine(Path("/nonexistent/rules.yaml")),
        reviewer=MappingReviewer(),
    )


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_200(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert isinstance(data["tesseract_available"], bool)


class TestTextEndpoints:
    """Tests for /correct, /language, /map and /forms."""

    def test_correct(self, client: TestClient) -> None:
        response = client.post("/correct", json={"text": "مرسوم رئاسيرقم 20-45"})
        assert response.status_code == 200
        data = response.json()
        assert data["corrected_text"] == "مرسوم رئاسي رقم 20-45"
        assert data["words_separated"] == 1
        assert data["language"]["language"] == "ar"

    def test_correct_requires_text(self, client: TestClient) -> None:
        assert client.post("/correct", json={}).status_code == 422

    def test_language(self, client: TestClient, french_decree: str) -> None:
        response = client.post("/language", json={"text": french_decree})
        data = response.json()
        assert data["language"] == "fr"
        assert data["direction"] == "ltr"
        assert data["ocr_profile"] == "legal"

    @patch("dzocr.api.app._get_components")
    def test_map(self, mock_components: MagicMock, client: TestClient, french_decree: str) -> None:
        mock_components.return_value = _components(MagicMock())
        response = client.post("/map", json={"text": french_decree})
        assert response.status_code == 200
        data = response.json()
        assert data["publication"]["number"] == "20-123"
        assert data["publication"]["article_count"] == 2
        assert data["mapping"]["form_id"] == "algerian-legal-document"
        fields = {f["name"]: f for f in data["mapping"]["fields"]}
        assert fields["date"]["value"] == "15 mars 2020"
        assert 0 <= data["review"]["score"] <= 100

    @patch("dzocr.api.app._get_components")
    def test_map_unknown_form(
        self, mock_components: MagicMock, client: TestClient, french_decree: str
    ) -> None:
        mock_components.return_value = _components(MagicMock())
        response = client.post("/map", json={"text": french_decree, "form_id": "permis"})
        assert response.status_code == 404

    @patch("dzocr.api.app._get_components")
    def test_forms(self, mock_components: MagicMock, client: TestClient) -> None:
        mock_components.return_value = _components(MagicMock())
        forms = client.get("/forms").json()["forms"]
        ids = [f["form_id"] for f in forms]
        assert "algerian-legal-document" in ids
        assert "administrative-procedure" in ids


class TestExtractEndpoint:
    """Tests for document upload endpoints with OCR mocked."""

    @patch("dzocr.api.app._get_components")
    def test_extract_success(
        self, mock_components: MagicMock, client: TestClient, french_decree: str
    ) -> None:
        processor = MagicMock()
        processor.process.return_value = _make_doc_result(french_decree)
        mock_components.return_value = _components(processor)

        response = client.post(
            "/extract",
            files={"file": ("decret.png", _make_test_image_bytes(), "image/png")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["filename"] == "decret.png"
        assert data["page_count"] == 1
        assert data["language"]["language"] == "fr"
        assert data["publication"]["document_type"] == "decret"
        assert data["mapping"]["mapped_count"] > 0
        assert "document_id" in data

    @patch("dzocr.api.app._get_components")
    def test_extract_unknown_form(
        self, mock_components: MagicMock, client: TestClient, french_decree: str
    ) -> None:
        processor = MagicMock()
        processor.process.return_value = _make_doc_result(french_decree)
        mock_components.return_value = _components(processor)

        response = client.post(
            "/extract?form_id=permis",
            files={"file": ("decret.png", _make_test_image_bytes(), "image/png")},
        )
        assert response.status_code == 404

    def test_extract_unsupported_type(self, client: TestClient) -> None:
        response = client.post(
            "/extract",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400
        assert "Unsupported" in response.json()["detail"]

    @patch("dzocr.api.app._get_components")
    def test_extract_unreadable_image(self, mock_components: MagicMock, client: TestClient) -> None:
        processor = MagicMock()
        processor.process.side_effect = UnidentifiedImageError("cannot identify image file")
        mock_components.return_value = _components(processor)

        response = client.post(
            "/extract",
            files={"file": ("scan.png", b"not an image", "image/png")},
        )
        assert response.status_code == 400

    @patch("dzocr.api.app._get_components")
    def test_extract_processing_error(self, mock_components: MagicMock, client: TestClient) -> None:
        processor = MagicMock()
        processor.process.side_effect = RuntimeError("PDF conversion failed")
        mock_components.return_value = _components(processor)

        response = client.post(
            "/extract",
            files={"file": ("jo.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert response.status_code == 500
        assert "PDF conversion failed" in response.json()["detail"]

    @patch("dzocr.api.app._get_components")
    def test_batch(
        self, mock_components: MagicMock, client: TestClient, arabic_decree: str
    ) -> None:
        processor = MagicMock()
        processor.process.return_value = _make_doc_result(arabic_decree)
        mock_components.return_value = _components(processor)

        response = client.post(
            "/extract/batch",
            files=[
                ("files", ("decret.png", _make_test_image_bytes(), "image/png")),
                ("files", ("notes.txt", b"hello", "text/plain")),
            ],
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_documents"] == 2
        assert data["successful"] == 1
        assert data["failed"] == 1
        assert data["results"][0]["result"]["publication"]["number"] == "20-45"
        assert "Unsupported" in data["results"][1]["error"]


class TestApprovalEndpoints:
    """Tests for the approval queue endpoints."""

    def _submit(self, client: TestClient, **overrides) -> dict:
        payload = {
            "item_type": "algerian-legal-document",
            "title": "Décret exécutif n° 20-123",
            "data": {"number": "20-123"},
            "confidence": 0.8,
        }
        payload.update(overrides)
        response = client.post("/approvals", json=payload)
        assert response.status_code == 201
        return response.json()

    def test_submit(self, client: TestClient) -> None:
        item = self._submit(client, priority="high")
        assert item["status"] == "pending"
        assert item["priority"] == "high"
        assert item["original_data"] == {"number": "20-123"}

    def test_submit_empty_title(self, client: TestClient) -> None:
        response = client.post(
            "/approvals", json={"item_type": "decret", "title": "  ", "data": {}}
        )
        assert response.status_code == 400

    def test_get_unknown(self, client: TestClient) -> None:
        assert client.get("/approvals/missing").status_code == 404

    def test_approve_then_conflict(self, client: TestClient) -> None:
        item = self._submit(client)
        url = f"/approvals/{item['id']}/approve"

        response = client.post(url, json={"actor": "reviewer-1", "comment": "ok"})
        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["approved_by"] == "reviewer-1"

        assert client.post(url, json={"actor": "reviewer-2"}).status_code == 409

    def test_reject_requires_reason(self, client: TestClient) -> None:
        item = self._submit(client)
        response = client.post(
            f"/approvals/{item['id']}/reject", json={"actor": "reviewer-1", "reason": " "}
        )
        assert response.status_code == 400

    def test_assign_and_request_changes(self, client: TestClient) -> None:
        item = self._submit(client)

        assigned = client.post(f"/approvals/{item['id']}/assign", json={"reviewer": "amina"})
        assert assigned.json()["status"] == "under_review"
        assert assigned.json()["assigned_to"] == "amina"

        changed = client.post(
            f"/approvals/{item['id']}/request-changes",
            json={"actor": "amina", "notes": "date illisible"},
        )
        assert changed.json()["status"] == "modified"

    def test_resubmit_after_changes(self, client: TestClient) -> None:
        item = self._submit(client)
        client.post(
            f"/approvals/{item['id']}/request-changes",
            json={"actor": "amina", "notes": "numéro erroné"},
        )

        response = client.post(
            f"/approvals/{item['id']}/resubmit",
            json={"actor": "karim", "data": {"number": "20-124"}, "comment": "corrigé"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["data"] == {"number": "20-124"}
        assert body["original_data"] == {"number": "20-123"}

        approved = client.post(f"/approvals/{item['id']}/approve", json={"actor": "amina"})
        assert approved.json()["status"] == "approved"

    def test_resubmit_requires_modified_status(self, client: TestClient) -> None:
        item = self._submit(client)
        response = client.post(
            f"/approvals/{item['id']}/resubmit",
            json={"actor": "karim", "data": {"number": "20-124"}},
        )
        assert response.status_code == 409

    def test_list_and_filter(self, client: TestClient) -> None:
        self._submit(client, title="low", priority="low")
        self._submit(client, title="urgent", priority="urgent")

        titles = [i["title"] for i in client.get("/approvals").json()]
        assert titles == ["urgent", "low"]

        low = client.get("/approvals", params={"priority": "low"}).json()
        assert [i["title"] for i in low] == ["low"]

    def test_stats(self, client: TestClient) -> None:
        self._submit(client, priority="urgent", confidence=0.6)
        self._submit(client, confidence=1.0)

        stats = client.get("/approvals/stats").json()
        assert stats["total"] == 2
        assert stats["by_status"]["pending"] == 2
        assert stats["average_confidence"] == 0.8
        assert stats["pending_high_priority"] == 1

    def test_batch_approve(self, client: TestClient) -> None:
        first = self._submit(client)
        second = self._submit(client)

        response = client.post(
            "/approvals/batch-approve",
            json={"item_ids": [first["id"], second["id"], "missing"], "actor": "chef"},
        )

        data = response.json()
        assert data["approved"] == [first["id"], second["id"]]
        assert list(data["errors"]) == ["missing"]
