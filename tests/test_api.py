"""
FastAPI endpoint tests for the Contact Reconciler API.

Uses httpx + FastAPI TestClient — no real server needed.
"""

from __future__ import annotations

import api
import pytest
from api import MAX_UPLOAD_BYTES, app
from fastapi.testclient import TestClient

from contact_reconciler.pipeline import ContactReconciliationPipeline

client = TestClient(app)


@pytest.fixture(scope="module", autouse=True)
def _warm_pipeline() -> None:
    """Initialise the pipeline once for all API tests (bypasses lifespan)."""
    api._pipeline = ContactReconciliationPipeline()
    yield  # type: ignore[misc]
    api._pipeline = None


# ─── Sample exports ─────────────────────────────────────────────────

GOOGLE_VCF = (
    "BEGIN:VCARD\r\n"
    "VERSION:3.0\r\n"
    "FN:Jane Doe\r\n"
    "N:Doe;Jane;;;\r\n"
    "EMAIL:jane@doe.org\r\n"
    "END:VCARD\r\n"
    "BEGIN:VCARD\r\n"
    "VERSION:3.0\r\n"
    "FN:Support\r\n"
    "EMAIL:support@company.com\r\n"
    "END:VCARD\r\n"
)

APPLE_VCF = (
    "BEGIN:VCARD\r\n"
    "VERSION:3.0\r\n"
    "FN:Jane Doe\r\n"
    "TEL:555-123-4567\r\n"
    "END:VCARD\r\n"
)


class TestHealthEndpoint:
    def test_health_returns_200(self) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_health_response_shape(self) -> None:
        data = client.get("/health").json()
        assert data == {"status": "healthy", "version": "1.0.0"}


class TestReconcileEndpoint:
    def test_merges_and_filters(self) -> None:
        resp = client.post("/reconcile", json={"google_vcf": GOOGLE_VCF, "apple_vcf": APPLE_VCF})
        assert resp.status_code == 200
        stats = resp.json()["stats"]
        assert stats["combined_total"] == 3
        assert stats["filtered_out"] == 1
        assert stats["duplicates_merged"] == 1
        assert stats["final_count"] == 1

    def test_discarded_summary(self) -> None:
        data = client.post("/reconcile", json={"google_vcf": GOOGLE_VCF}).json()
        (removed,) = data["discarded"]
        assert removed["full_name"] == "Support"
        assert removed["email"] == "support@company.com"
        assert removed["phone"] is None
        assert removed["code"] == "GENERIC_NAME"
        assert removed["reason"] == "Generic name: 'Support'"

    def test_documents_returned(self) -> None:
        data = client.post("/reconcile", json={"google_vcf": GOOGLE_VCF, "apple_vcf": APPLE_VCF}).json()
        assert data["google_vcf"].startswith("BEGIN:VCARD\r\nVERSION:3.0\r\nUID:")
        assert "PRODID:-//Apple Inc.//macOS 15.5//EN" in data["apple_vcf"]
        assert "TEL:5551234567" in data["google_vcf"]

    def test_empty_input_rejected(self) -> None:
        resp = client.post("/reconcile", json={})
        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "NO_CONTACTS_FOUND"

    def test_wrong_type_rejected(self) -> None:
        resp = client.post("/reconcile", json={"google_vcf": 42})
        assert resp.status_code == 422


class TestReconcileFilesEndpoint:
    def test_both_files(self) -> None:
        resp = client.post(
            "/reconcile/files",
            files={
                "google": ("google.vcf", GOOGLE_VCF.encode(), "text/vcard"),
                "apple": ("apple.vcf", APPLE_VCF.encode(), "text/vcard"),
            },
        )
        assert resp.status_code == 200
        assert resp.json()["stats"]["final_count"] == 1

    def test_single_file(self) -> None:
        resp = client.post(
            "/reconcile/files",
            files={"apple": ("apple.vcf", APPLE_VCF.encode(), "text/vcard")},
        )
        assert resp.status_code == 200
        assert resp.json()["stats"]["google_total"] == 0

    def test_non_utf8_rejected(self) -> None:
        resp = client.post(
            "/reconcile/files",
            files={"google": ("google.vcf", b"\xff\xfe\xfa", "text/vcard")},
        )
        assert resp.status_code == 400

    def test_oversized_rejected(self) -> None:
        resp = client.post(
            "/reconcile/files",
            files={"google": ("google.vcf", b"x" * (MAX_UPLOAD_BYTES + 1), "text/vcard")},
        )
        assert resp.status_code == 413

    def test_file_without_cards(self) -> None:
        resp = client.post(
            "/reconcile/files",
            files={"google": ("google.vcf", b"nothing here", "text/plain")},
        )
        assert resp.status_code == 422
