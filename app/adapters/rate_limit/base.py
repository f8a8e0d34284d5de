"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the partition store can move to a shared backend (e.g., Redis) without
touching the routes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitProfile:
    """Quota applied to one identity for one request.

    Attributes:
        permit_limit: Requests admitted per window.
        window_minutes: Length of the fixed window in minutes.
    """

    permit_limit: int
    window_minutes: int

    def __post_init__(self) -> None:
        if self.permit_limit < 1:
            raise ValueError("permit_limit must be >= 1")
        if self.window_minutes < 1:
            raise ValueError("window_minutes must be >= 1")

    @property
    def window_seconds(self) -> int:
        return self.window_minutes * 60


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of an admission check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Permits per window of the partition.
        remaining: Permits left in the current window (0 when rejected).
        reset_after_seconds: Seconds until the current window closes.
        retry_after_seconds: Suggested wait when rejected, otherwise None.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_after_seconds: int
    retry_after_seconds: int | None


class AbstractAdmissionController(ABC):
    """Interface for per-identity admission controllers."""

    @abstractmethod
    def admit(self, key: str, profile: RateLimitProfile) -> AdmissionResult:
        """Admit or reject one request for the partition identified by key.

        Args:
            key: Identity key; the empty string is the anonymous partition.
            profile: Quota resolved for this identity.

        Returns:
            AdmissionResult describing the decision.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str | None = None) -> None:
        """Forget one partition, or all partitions when key is None.

        Not called on the request path: profile updates take effect at the next
        window rollover. Exists for tests and for operators clearing state.
        """
        raise NotImplementedError
