"""HTTP surface tests; the insight service is left unconfigured."""

import pytest
from fastapi.testclient import TestClient

from deal_brain.main import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


class TestExtractEndpoint:
    def test_extract_csv(self, client: TestClient, deal_csv: str):
        response = client.post(
            "/api/v1/extract",
            files=[("files", ("deal.csv", deal_csv.encode(), "text/csv"))],
            data={"target_currency": "USD"},
        )
        assert response.status_code == 200

        body = response.json()
        assert set(body["domains"]) == {
            "highLevelParameters", "dealAssumptions", "revenueItems",
            "costItems", "debtModel", "exitAssumptions",
        }
        deal = body["domains"]["dealAssumptions"]
        assert deal["values"]["dealValue"] == 100000000
        assert deal["target_currency"] == "USD"
        assert deal["confidence"]["dealValue"]["confidence"] > 0
        assert body["snapshot"]["transactionDetails"]["currency"] == "USD"

    def test_unsupported_currency(self, client: TestClient, deal_csv: str):
        response = client.post(
            "/api/v1/extract",
            files=[("files", ("deal.csv", deal_csv.encode(), "text/csv"))],
            data={"target_currency": "XYZ"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Unsupported target currency: XYZ"

    def test_empty_upload(self, client: TestClient):
        response = client.post(
            "/api/v1/extract",
            files=[("files", ("empty.txt", b"", "text/plain"))],
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Empty upload"


class TestHealthEndpoint:
    def test_health_without_insight(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "insight_available": False}
