"""Caller identity extraction from the Authorization header.

The rate limiter partitions callers by a claim read from their bearer token.
The claim is read without checking the signature: verification belongs to
``app.core.auth``, which runs before rate limiting on every protected route.
"""

from __future__ import annotations

import logging

from jose import jwt
from jose.exceptions import JWTError

logger = logging.getLogger(__name__)

ANONYMOUS = ""
BEARER_SCHEME = "bearer"


def parse_bearer_token(authorization: str | None) -> str | None:
    """Return the token of a ``Bearer`` Authorization header.

    Examples:
        >>> parse_bearer_token("Bearer abc.def.ghi")
        'abc.def.ghi'
        >>> parse_bearer_token("Basic dXNlcjpwYXNz") is None
        True
        >>> parse_bearer_token(None) is None
        True
    """
    if not authorization:
        return None

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token:
        return None
    return token


class IdentityExtractor:
    """Derive the rate-limit identity key from an Authorization header.

    Never raises: any header that cannot yield the identity claim maps to the
    anonymous key.
    """

    def __init__(self, claim: str = "Email") -> None:
        self.claim = claim

    def extract(self, authorization: str | None) -> str:
        token = parse_bearer_token(authorization)
        if token is None:
            return ANONYMOUS

        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError as exc:
            logger.warning(
                "identity.malformed_token",
                extra={"reason": type(exc).__name__, "token_length": len(token)},
            )
            return ANONYMOUS

        value = claims.get(self.claim)
        if not isinstance(value, str) or not value.strip():
            logger.warning(
                "identity.claim_missing",
                extra={"claim": self.claim, "claims_present": sorted(claims)},
            )
            return ANONYMOUS

        return value.strip()
