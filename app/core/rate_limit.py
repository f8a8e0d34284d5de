"""Rate limiting dependency for FastAPI routes.

This module wires the identity extractor, quota resolver and admission
controller into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: the partition store lives behind AbstractAdmissionController.
- Explicit ownership: the components are built per app in ``create_app`` and
  read from ``request.app.state``; there is no module-level limiter.

Rate limiting strategy:
- One fixed-window partition per identity (the token's identity claim).
- Callers without a usable token share the anonymous partition.
- The quota is resolved before the partition is locked, so directory I/O
  never happens inside the critical section.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from app.adapters.rate_limit.base import AbstractAdmissionController, AdmissionResult
from app.core.config import settings
from app.core.errors import RateLimitAppError
from app.services.identity import ANONYMOUS, IdentityExtractor
from app.services.quota_service import QuotaResolver

logger = logging.getLogger(__name__)


@dataclass
class RateLimitComponents:
    """Rate limiting collaborators owned by one application instance."""

    extractor: IdentityExtractor
    resolver: QuotaResolver
    controller: AbstractAdmissionController


def get_rate_limit_components(request: Request) -> RateLimitComponents:
    return request.app.state.rate_limit


def _request_identity(request: Request, extractor: IdentityExtractor) -> str:
    # Prefer the identity verified by the auth dependency when it already ran.
    verified = getattr(request.state, "identity", None)
    if verified:
        return verified
    return extractor.extract(request.headers.get("Authorization"))


def _rate_limit_headers(result: AdmissionResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_after_seconds),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


def describe_caller(request: Request, identity: str) -> dict[str, str]:
    """Structured fields identifying who called what, for rejection logs."""
    return {
        "identity": identity or "Anonymous",
        "path": request.url.path,
        "remote_addr": request.client.host if request.client else "unknown",
    }


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing the per-identity quota.

    Declared sync so FastAPI runs it in the threadpool: the quota lookup may
    hit the database.

    Raises:
        RateLimitAppError: 429 Too Many Requests when the partition is exhausted.
    """

    if not settings.app.rate_limit_enabled:
        return

    components = get_rate_limit_components(request)
    identity = _request_identity(request, components.extractor)
    profile = components.resolver.resolve(identity)
    result = components.controller.admit(identity, profile)

    if result.allowed:
        logger.debug(
            "rate_limit.admitted",
            extra={
                "anonymous": identity == ANONYMOUS,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    logger.warning(
        "rate_limit.rejected",
        extra={
            **describe_caller(request, identity),
            "limit": result.limit,
            "window_minutes": profile.window_minutes,
            "retry_after_s": result.retry_after_seconds,
        },
    )

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message="Rate limit exceeded. Try again later.",
        details={"limit": result.limit, "retry_after": result.retry_after_seconds or 0},
        headers=_rate_limit_headers(result) if settings.app.rate_limit_include_headers else None,
    )
