"""Unit tests for bearer token authentication."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from fastapi import HTTPException
from jose import jwt

from app.core.auth import create_access_token, decode_access_token, verify_bearer_token
from app.core.config import settings
from app.core.errors import AuthenticationAppError


def _request() -> Mock:
    request = Mock()
    request.url.path = "/api/v1/todoitems/"
    request.state = Mock(spec=[])
    return request


class TestDecodeAccessToken:
    """Test core token verification logic."""

    def test_round_trips_identity(self) -> None:
        token = create_access_token("alice@example.com")
        assert decode_access_token(token) == "alice@example.com"

    def test_rejects_wrong_signature(self) -> None:
        token = jwt.encode({"Email": "alice@example.com"}, "other-secret", algorithm="HS256")

        with pytest.raises(AuthenticationAppError) as exc_info:
            decode_access_token(token)

        assert exc_info.value.code == "invalid_token"

    def test_rejects_expired_token(self) -> None:
        expired = datetime.now(timezone.utc) - timedelta(minutes=1)
        token = jwt.encode(
            {"Email": "alice@example.com", "exp": expired},
            settings.auth.jwt_secret,
            algorithm=settings.auth.jwt_algorithm,
        )

        with pytest.raises(AuthenticationAppError) as exc_info:
            decode_access_token(token)

        assert exc_info.value.code == "token_expired"

    def test_rejects_garbage(self) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            decode_access_token("garbage-not-a-jwt")

        assert exc_info.value.code == "invalid_token"

    def test_rejects_token_without_identity_claim(self) -> None:
        token = jwt.encode(
            {"sub": "someone"}, settings.auth.jwt_secret, algorithm=settings.auth.jwt_algorithm
        )

        with pytest.raises(AuthenticationAppError) as exc_info:
            decode_access_token(token)

        assert exc_info.value.code == "identity_claim_missing"

    @patch("app.core.auth.settings")
    def test_checks_audience_when_configured(self, mock_settings) -> None:
        mock_settings.auth.jwt_secret = "s3cret"
        mock_settings.auth.jwt_algorithm = "HS256"
        mock_settings.auth.identity_claim = "Email"
        mock_settings.auth.audience = "todo-api"
        mock_settings.auth.issuer = None

        good = jwt.encode({"Email": "a@example.com", "aud": "todo-api"}, "s3cret", algorithm="HS256")
        bad = jwt.encode({"Email": "a@example.com", "aud": "other"}, "s3cret", algorithm="HS256")

        assert decode_access_token(good) == "a@example.com"
        with pytest.raises(AuthenticationAppError):
            decode_access_token(bad)


class TestVerifyBearerTokenDependency:
    """Test FastAPI dependency for bearer verification."""

    @pytest.mark.asyncio
    async def test_missing_header_returns_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await verify_bearer_token(_request(), authorization=None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    @pytest.mark.asyncio
    async def test_non_bearer_scheme_returns_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await verify_bearer_token(_request(), authorization="Basic dXNlcjpwYXNz")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token_returns_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await verify_bearer_token(_request(), authorization="Bearer garbage-not-a-jwt")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Bearer token is invalid"

    @pytest.mark.asyncio
    async def test_valid_token_sets_request_identity(self) -> None:
        request = _request()
        token = create_access_token("alice@example.com")

        identity = await verify_bearer_token(request, authorization=f"Bearer {token}")

        assert identity == "alice@example.com"
        assert request.state.identity == "alice@example.com"
