"""Tests for the caller profile endpoints."""

import logging

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings


@pytest.fixture
def carol(auth_headers) -> dict[str, str]:
    return auth_headers("carol@example.com")


def test_unregistered_caller_reports_default_profile(client: TestClient, carol) -> None:
    response = client.get("/api/v1/users/me", headers=carol)

    assert response.status_code == 200
    assert response.json() == {
        "email": "carol@example.com",
        "registered": False,
        "permit_limit": settings.app.rate_limit_authenticated_permits,
        "rate_limit_window_minutes": settings.app.rate_limit_authenticated_window_minutes,
    }


def test_update_rate_limit_stores_profile(client: TestClient, carol) -> None:
    response = client.put(
        "/api/v2/users/me/rate-limit",
        json={"permit_limit": 30, "rate_limit_window_minutes": 10},
        headers=carol,
    )

    assert response.status_code == 200
    assert response.json()["registered"] is True
    assert response.json()["permit_limit"] == 30

    profile = client.get("/api/v1/users/me", headers=carol).json()
    assert profile["permit_limit"] == 30
    assert profile["rate_limit_window_minutes"] == 10


def test_update_rate_limit_invalidates_cached_profile(app, client: TestClient, carol) -> None:
    resolver = app.state.rate_limit.resolver
    # Warm the cache with the default profile
    client.get("/api/v1/users/me", headers=carol)
    assert resolver.resolve("carol@example.com").permit_limit == settings.app.rate_limit_authenticated_permits

    client.put(
        "/api/v1/users/me/rate-limit",
        json={"permit_limit": 7, "rate_limit_window_minutes": 2},
        headers=carol,
    )

    assert resolver.resolve("carol@example.com").permit_limit == 7


@pytest.mark.parametrize(
    "payload",
    [
        {"permit_limit": 0, "rate_limit_window_minutes": 5},
        {"permit_limit": 10_001, "rate_limit_window_minutes": 5},
        {"permit_limit": 10, "rate_limit_window_minutes": 0},
        {"permit_limit": 10, "rate_limit_window_minutes": 1_441},
        {"permit_limit": 10},
    ],
)
def test_update_rate_limit_validates_payload(client: TestClient, carol, payload: dict) -> None:
    response = client.put("/api/v1/users/me/rate-limit", json=payload, headers=carol)

    assert response.status_code == 422


def test_profile_routes_require_authentication(client: TestClient) -> None:
    assert client.get("/api/v1/users/me").status_code == 401


@pytest.mark.parametrize(
    "payload",
    [
        # More permits per window than the default profile
        {"permit_limit": 10_000, "rate_limit_window_minutes": 1},
        {"permit_limit": 61, "rate_limit_window_minutes": 5},
        # Same permits over a shorter window
        {"permit_limit": 60, "rate_limit_window_minutes": 4},
    ],
)
def test_caller_cannot_raise_own_quota(
    client: TestClient, carol, payload: dict, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="app.services.user_service"):
        response = client.put("/api/v1/users/me/rate-limit", json=payload, headers=carol)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "rate_limit_increase_not_allowed"
    assert not [r for r in caplog.records if r.getMessage() == "user.rate_limit_updated"]

    profile = client.get("/api/v1/users/me", headers=carol).json()
    assert profile["registered"] is False
    assert profile["permit_limit"] == settings.app.rate_limit_authenticated_permits


def test_lowered_quota_cannot_be_raised_again(client: TestClient, carol) -> None:
    lowered = client.put(
        "/api/v1/users/me/rate-limit",
        json={"permit_limit": 5, "rate_limit_window_minutes": 5},
        headers=carol,
    )
    assert lowered.status_code == 200

    response = client.put(
        "/api/v1/users/me/rate-limit",
        json={"permit_limit": 60, "rate_limit_window_minutes": 5},
        headers=carol,
    )

    assert response.status_code == 400
    assert client.get("/api/v1/users/me", headers=carol).json()["permit_limit"] == 5


def test_caller_can_keep_current_quota(client: TestClient, carol) -> None:
    response = client.put(
        "/api/v1/users/me/rate-limit",
        json={
            "permit_limit": settings.app.rate_limit_authenticated_permits,
            "rate_limit_window_minutes": settings.app.rate_limit_authenticated_window_minutes,
        },
        headers=carol,
    )

    assert response.status_code == 200
    assert response.json()["registered"] is True
