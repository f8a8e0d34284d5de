from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError


def test_health_reports_database_status(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "checks": {"database": "healthy"}}


def test_health_returns_503_when_database_unreachable(client: TestClient) -> None:
    with patch(
        "app.api.routes.health.ping",
        side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")),
    ):
        response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_health_is_not_versioned(client: TestClient) -> None:
    response = client.get("/health")

    assert "api-supported-versions" not in response.headers


def test_openapi_documents_bearer_security(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    assert schema["components"]["securitySchemes"]["BearerAuth"]["scheme"] == "bearer"
    assert schema["security"] == [{"BearerAuth": []}]
    assert schema["paths"]["/health"]["get"]["security"] == []
    assert "/api/v1/todoitems/" in schema["paths"]
    assert "/api/v2/todoitems/{item_id}" in schema["paths"]
    assert "429" in schema["paths"]["/api/v1/todoitems/"]["get"]["responses"]
    assert {t["name"] for t in schema["tags"]} >= {"Todo Items", "Users", "Health"}


def test_openapi_document_per_version(client: TestClient) -> None:
    v1 = client.get("/openapi/v1.json").json()
    v2 = client.get("/openapi/v2.json").json()

    assert v1["info"]["title"] == "Todo API - v1"
    assert v2["info"]["title"] == "Todo API - v2"
    assert "/api/v1/todoitems/" in v1["paths"]
    assert not [p for p in v1["paths"] if p.startswith("/api/v2/")]
    assert "/api/v2/users/me" in v2["paths"]
    assert not [p for p in v2["paths"] if p.startswith("/api/v1/")]
    assert v2["paths"]["/health"]["get"]["security"] == []
    assert v2["components"]["securitySchemes"]["BearerAuth"]["scheme"] == "bearer"


def test_unknown_version_has_no_openapi_document(client: TestClient) -> None:
    assert client.get("/openapi/v3.json").status_code == 404
