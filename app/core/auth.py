"""Bearer token (JWT) authentication.

Tokens are HMAC-signed JWTs carrying the caller identity in the configured
claim (``Email`` by default). Verification is done here, once per request,
before rate limiting runs on protected routes.

Design principles:
- Pure validation logic (``decode_access_token``) separate from FastAPI wiring
- Dependency Injection: routes use ``CurrentUserDep`` / ``Depends(verify_bearer_token)``
- Configuration-driven: secret, algorithm, audience and issuer come from AUTH_* env vars
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException, Request, status
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from app.core.config import settings
from app.core.errors import AuthenticationAppError
from app.services.identity import parse_bearer_token

logger = logging.getLogger(__name__)


def create_access_token(
    identity: str,
    *,
    expires_minutes: int | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Mint a signed token for identity (tests and local development).

    Args:
        identity: Value stored in the identity claim.
        expires_minutes: Lifetime override; defaults to AUTH_TOKEN_EXPIRE_MINUTES.
        extra_claims: Additional claims merged into the payload.

    Returns:
        Encoded JWT string.
    """
    cfg = settings.auth
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or cfg.token_expire_minutes
    )
    claims: dict[str, Any] = {cfg.identity_claim: identity, "sub": identity, "exp": expire}
    if cfg.audience:
        claims["aud"] = cfg.audience
    if cfg.issuer:
        claims["iss"] = cfg.issuer
    if extra_claims:
        claims.update(extra_claims)
    return jwt.encode(claims, cfg.jwt_secret, algorithm=cfg.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Verify token and return the caller identity.

    Pure validation logic without FastAPI dependencies for easy testing.

    Raises:
        AuthenticationAppError: If the signature, expiry, audience or issuer is
            invalid, or the identity claim is missing.
    """
    cfg = settings.auth
    try:
        claims = jwt.decode(
            token,
            cfg.jwt_secret,
            algorithms=[cfg.jwt_algorithm],
            audience=cfg.audience,
            issuer=cfg.issuer,
            options={"verify_aud": cfg.audience is not None},
        )
    except ExpiredSignatureError as exc:
        raise AuthenticationAppError(code="token_expired", message="Bearer token has expired") from exc
    except JWTError as exc:
        raise AuthenticationAppError(code="invalid_token", message="Bearer token is invalid") from exc

    identity = claims.get(cfg.identity_claim)
    if not isinstance(identity, str) or not identity.strip():
        raise AuthenticationAppError(
            code="identity_claim_missing",
            message=f"Bearer token has no '{cfg.identity_claim}' claim",
        )
    return identity.strip()


async def verify_bearer_token(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """FastAPI dependency authenticating the caller.

    Stores the verified identity on ``request.state.identity`` so later
    dependencies (rate limiting) can reuse it.

    Raises:
        HTTPException: 401 Unauthorized if the token is missing or invalid.
    """
    token = parse_bearer_token(authorization)
    if token is None:
        logger.info("auth.missing_token", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token. Provide an Authorization: Bearer <token> header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        identity = decode_access_token(token)
    except AuthenticationAppError as exc:
        logger.warning(
            "auth.invalid_token",
            extra={"reason": exc.code, "path": request.url.path},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    request.state.identity = identity
    return identity


CurrentUserDep = Annotated[str, Depends(verify_bearer_token)]
