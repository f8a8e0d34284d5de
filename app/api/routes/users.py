from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.core.auth import CurrentUserDep, verify_bearer_token
from app.core.rate_limit import enforce_rate_limit, get_rate_limit_components
from app.db.session import SessionDep
from app.schemas.user import RateLimitProfileInput, UserProfileResponse
from app.services import user_service

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(verify_bearer_token), Depends(enforce_rate_limit)],
)


@router.get("/me", response_model=UserProfileResponse)
def read_my_profile(session: SessionDep, identity: CurrentUserDep) -> UserProfileResponse:
    """Return the caller's directory record and effective rate-limit profile."""
    return user_service.get_profile(session, identity)


@router.put("/me/rate-limit", response_model=UserProfileResponse)
def update_my_rate_limit(
    payload: RateLimitProfileInput,
    request: Request,
    session: SessionDep,
    identity: CurrentUserDep,
) -> UserProfileResponse:
    """Store a personalised rate-limit profile for the caller.

    The cached profile is invalidated immediately; the partition picks up the
    new limit when its current window rolls over.
    """
    resolver = get_rate_limit_components(request).resolver
    return user_service.update_profile(session, identity, payload, resolver)
