"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory partition table and later migrate to Redis or another shared
store without changing the API layer.
"""

from app.adapters.rate_limit.base import (
    AbstractAdmissionController,
    AdmissionResult,
    RateLimitProfile,
)
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractAdmissionController",
    "AdmissionResult",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitProfile",
]
