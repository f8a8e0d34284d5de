"""Pydantic schemas for the caller's directory record."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitProfileInput(BaseModel):
    """Personalised quota requested for the caller."""

    permit_limit: int = Field(
        ...,
        ge=1,
        le=10_000,
        description="Requests allowed per window.",
    )
    rate_limit_window_minutes: int = Field(
        ...,
        ge=1,
        le=1_440,
        description="Window length in minutes (at most one day).",
    )


class UserProfileResponse(BaseModel):
    """Caller identity and the quota their requests are admitted under."""

    email: str
    registered: bool = Field(
        ..., description="Whether the caller has a directory record."
    )
    permit_limit: int
    rate_limit_window_minutes: int
