"""Pydantic schemas for the health check."""

from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, Field


class HealthReport(BaseModel):
    status: Literal["healthy", "unhealthy"]
    checks: Dict[str, str] = Field(
        default_factory=dict,
        description="Per-dependency status, e.g. {'database': 'healthy'}.",
    )
