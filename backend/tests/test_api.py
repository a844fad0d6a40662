"""Tests for the HTTP API."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from backend.main import app
from backend.models import ExtractionMethod, ExtractionResult


@pytest.fixture
def client(test_db, tmp_path):
    """API client backed by a temporary database and uploads directory."""
    with patch("backend.main.db", test_db), patch("backend.services.ingestion.db", test_db), patch(
        "backend.services.ingestion.settings.data_dir", tmp_path
    ):
        yield TestClient(app)


class TestHealth:
    """Test the health endpoint."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["transaction_count"] == 0
        assert body["watcher"]["is_watching"] is False


class TestUpload:
    """Test statement uploads."""

    def test_upload_quickbooks_csv(self, client, quickbooks_csv, tmp_path):
        """A CSV upload is stored and processed."""
        response = client.post(
            "/statements/upload",
            files={"file": ("quickbooks_march.csv", quickbooks_csv.encode(), "text/csv")},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "processed"
        assert body["parser_type"] == "quickbooks"
        assert body["transactions_created"] == 2
        assert body["file_name"] == "quickbooks_march.csv"
        assert len(list((tmp_path / "uploads").iterdir())) == 1

    def test_unknown_document_type(self, client, test_db):
        """An unclassifiable upload is recorded and rejected with 400."""
        extracted = ExtractionResult(text="Electric bill", method=ExtractionMethod.OCR)
        with patch("backend.services.ingestion.extract_text", return_value=extracted):
            response = client.post("/statements/upload", files={"file": ("scan.png", b"png-bytes", "image/png")})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "Could not determine document type"
        assert test_db.get_statement(detail["statement_id"]).error_message == "Unknown document type"

    def test_unsupported_extension(self, client):
        response = client.post("/statements/upload", files={"file": ("statement.docx", b"data", "application/msword")})
        assert response.status_code == 400

    def test_upload_types_independent_of_watcher(self, client, navient_text):
        """Narrowing the watched extensions does not narrow what can be uploaded."""
        extracted = ExtractionResult(text=navient_text, method=ExtractionMethod.PDF, page_count=1)
        with patch("backend.main.settings.watch_extensions", [".csv"]), patch(
            "backend.services.ingestion.extract_text", return_value=extracted
        ):
            response = client.post("/statements/upload", files={"file": ("navient.pdf", b"%PDF-1.4", "application/pdf")})

        assert response.status_code == 201
        assert response.json()["parser_type"] == "navient"

    def test_empty_file(self, client):
        response = client.post("/statements/upload", files={"file": ("navient.pdf", b"", "application/pdf")})
        assert response.status_code == 400

    def test_file_too_large(self, client):
        """Uploads over the size limit are rejected."""
        with patch("backend.main.settings.max_upload_bytes", 10):
            response = client.post(
                "/statements/upload", files={"file": ("navient.pdf", b"x" * 11, "application/pdf")}
            )
        assert response.status_code == 413


class TestStatements:
    """Test statement listing, details and reprocessing."""

    def _upload(self, client, quickbooks_csv):
        response = client.post(
            "/statements/upload",
            files={"file": ("quickbooks_march.csv", quickbooks_csv.encode(), "text/csv")},
        )
        return response.json()["statement_id"]

    def test_list_statements(self, client, quickbooks_csv):
        statement_id = self._upload(client, quickbooks_csv)

        response = client.get("/statements")

        assert response.status_code == 200
        [statement] = response.json()
        assert statement["id"] == statement_id
        assert statement["transaction_count"] == 2

    def test_statement_detail(self, client, quickbooks_csv):
        """Details include the statement's transactions."""
        statement_id = self._upload(client, quickbooks_csv)

        response = client.get(f"/statements/{statement_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["source_type"] == "quickbooks"
        assert len(body["transactions"]) == 2
        assert {t["verification_status"] for t in body["transactions"]} == {"Unverified"}

    def test_statement_not_found(self, client):
        assert client.get("/statements/999").status_code == 404

    def test_reprocess(self, client, quickbooks_csv):
        """Reprocessing replaces rather than duplicates transactions."""
        statement_id = self._upload(client, quickbooks_csv)

        response = client.post(f"/statements/{statement_id}/process")

        assert response.status_code == 200
        assert response.json()["transactions_created"] == 2
        assert client.get(f"/statements/{statement_id}").json()["transaction_count"] == 2

    def test_reprocess_not_found(self, client):
        assert client.post("/statements/999/process").status_code == 404


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
