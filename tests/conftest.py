"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before anything imports ``app.core.config``
so the global settings object is built from them.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-please-change")
os.environ.setdefault("AUTH_IDENTITY_CLAIM", "Email")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")

from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.auth import create_access_token
from app.core.config import settings


class FakeClock:
    """Deterministic clock for window rollover and TTL tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app(clock: FakeClock, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[FastAPI]:
    """Fresh application with its own SQLite file and partitions."""
    monkeypatch.setattr(settings.db, "url", f"sqlite:///{tmp_path / 'todo.db'}")
    application = create_app(clock=clock)
    yield application
    application.state.engine.dispose()


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Build an Authorization header carrying a valid token for an email."""

    def _build(email: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(email)}"}

    return _build
