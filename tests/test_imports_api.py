"""
tests/test_imports_api.py

HTTP contract tests for the import preview endpoint and request validation.
No database is touched.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers import imports_router
from app.config import ImportSettings, get_import_settings
from app.parsing.tabular_parser import TabularParser
from app.services.import_orchestrator import ImportOrchestrator, get_import_orchestrator

TENANT_HEADERS = {"X-Tenant-Id": "1", "X-Environment": "test"}
CSV_CONTENT = b"Scheme Code,Trade Date,Amount,Units,NAV\nINF001,2024-01-15,1000,10,100\nINF002,2024-01-16,500,5,100\n"


@pytest.fixture()
def client() -> TestClient:
    settings = ImportSettings(preview_rows=1)
    application = FastAPI()
    application.include_router(imports_router)
    application.dependency_overrides[get_import_settings] = lambda: settings
    application.dependency_overrides[get_import_orchestrator] = lambda: ImportOrchestrator(
        settings=settings,
        parser=TabularParser(max_format_check_bytes=settings.max_format_check_bytes),
    )
    return TestClient(application)


class TestPreviewEndpoint:
    def test_preview_returns_headers_rows_and_mapping(self, client: TestClient) -> None:
        response = client.post(
            "/imports/preview",
            params={"record_kind": "transaction"},
            files={"file": ("txns.csv", CSV_CONTENT, "text/csv")},
            headers=TENANT_HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["headers"] == ["Scheme Code", "Trade Date", "Amount", "Units", "NAV"]
        assert data["total_rows"] == 2
        assert data["rows"] == [
            {"Scheme Code": "INF001", "Trade Date": "2024-01-15", "Amount": "1000", "Units": "10", "NAV": "100"}
        ]
        assert data["mapping"]["scheme_code"] == "Scheme Code"
        assert data["mapping"]["total_amount"] == "Amount"
        assert data["unmapped_fields"] == []

    def test_rejects_unsupported_extension(self, client: TestClient) -> None:
        response = client.post(
            "/imports/preview",
            files={"file": ("statement.pdf", b"%PDF", "application/pdf")},
            headers=TENANT_HEADERS,
        )

        assert response.status_code == 400

    def test_requires_tenant_header(self, client: TestClient) -> None:
        response = client.post(
            "/imports/preview",
            files={"file": ("txns.csv", CSV_CONTENT, "text/csv")},
        )

        assert response.status_code == 422

    def test_rejects_unknown_environment(self, client: TestClient) -> None:
        response = client.post(
            "/imports/preview",
            files={"file": ("txns.csv", CSV_CONTENT, "text/csv")},
            headers={"X-Tenant-Id": "1", "X-Environment": "staging"},
        )

        assert response.status_code == 400

    def test_unknown_record_kind(self, client: TestClient) -> None:
        response = client.post(
            "/imports/preview",
            params={"record_kind": "scheme"},
            files={"file": ("txns.csv", CSV_CONTENT, "text/csv")},
            headers=TENANT_HEADERS,
        )

        assert response.status_code == 400

    def test_bad_field_mapping_json(self, client: TestClient) -> None:
        response = client.post(
            "/imports/preview",
            files={"file": ("txns.csv", CSV_CONTENT, "text/csv")},
            data={"field_mapping": "not json"},
            headers=TENANT_HEADERS,
        )

        assert response.status_code == 400

    def test_override_to_missing_column_is_structured(self, client: TestClient) -> None:
        response = client.post(
            "/imports/preview",
            files={"file": ("txns.csv", CSV_CONTENT, "text/csv")},
            data={"field_mapping": '{"total_amount": "Gross"}'},
            headers=TENANT_HEADERS,
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["errors"][0]["code"] == "override_source_not_found"
