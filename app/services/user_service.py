"""User directory service: configured default profiles and profile updates."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.adapters.rate_limit.base import RateLimitProfile
from app.core.config import AppSettings, settings
from app.core.errors import ValidationAppError
from app.db import crud
from app.schemas.user import RateLimitProfileInput, UserProfileResponse
from app.services.quota_service import QuotaResolver

logger = logging.getLogger(__name__)


def anonymous_profile(app_settings: AppSettings | None = None) -> RateLimitProfile:
    cfg = app_settings or settings.app
    return RateLimitProfile(
        permit_limit=cfg.rate_limit_anonymous_permits,
        window_minutes=cfg.rate_limit_anonymous_window_minutes,
    )


def default_authenticated_profile(app_settings: AppSettings | None = None) -> RateLimitProfile:
    cfg = app_settings or settings.app
    return RateLimitProfile(
        permit_limit=cfg.rate_limit_authenticated_permits,
        window_minutes=cfg.rate_limit_authenticated_window_minutes,
    )


def get_profile(session: Session, identity: str) -> UserProfileResponse:
    """Describe the quota identity is currently admitted under."""
    user = crud.get_user_by_email(session, identity)
    if user is None:
        profile = default_authenticated_profile()
        return UserProfileResponse(
            email=identity,
            registered=False,
            permit_limit=profile.permit_limit,
            rate_limit_window_minutes=profile.window_minutes,
        )
    return UserProfileResponse(
        email=user.email,
        registered=True,
        permit_limit=user.permit_limit,
        rate_limit_window_minutes=user.rate_limit_window_minutes,
    )


def _raises_quota(current: RateLimitProfile, requested: RateLimitProfile) -> bool:
    """True when requested admits more requests per window or per minute than current."""
    if requested.permit_limit > current.permit_limit:
        return True
    # Compare permits per minute without floats
    return (
        requested.permit_limit * current.window_minutes
        > current.permit_limit * requested.window_minutes
    )


def update_profile(
    session: Session,
    identity: str,
    payload: RateLimitProfileInput,
    resolver: QuotaResolver,
) -> UserProfileResponse:
    """Store a personalised profile and drop the cached one.

    Callers may only tighten their own quota: a profile allowing more permits
    per window, or a higher rate, than the one currently in effect is
    rejected. The new limit applies from the identity's next window.

    Raises:
        ValidationAppError: If the requested profile is more generous than the
            current one.
    """
    profile = RateLimitProfile(
        permit_limit=payload.permit_limit,
        window_minutes=payload.rate_limit_window_minutes,
    )
    current = get_profile(session, identity)
    current_profile = RateLimitProfile(
        permit_limit=current.permit_limit,
        window_minutes=current.rate_limit_window_minutes,
    )
    if _raises_quota(current_profile, profile):
        logger.warning(
            "user.rate_limit_increase_rejected",
            extra={
                "identity": identity,
                "permit_limit": profile.permit_limit,
                "window_minutes": profile.window_minutes,
            },
        )
        raise ValidationAppError(
            code="rate_limit_increase_not_allowed",
            message="A rate-limit profile can only be lowered by its owner",
            details={
                "context": {
                    "current_permit_limit": current_profile.permit_limit,
                    "current_window_minutes": current_profile.window_minutes,
                }
            },
        )

    user = crud.upsert_rate_limit_profile(session, identity, profile)
    resolver.invalidate(identity)
    logger.info(
        "user.rate_limit_updated",
        extra={
            "user_id": user.id,
            "permit_limit": profile.permit_limit,
            "window_minutes": profile.window_minutes,
        },
    )
    return get_profile(session, identity)
