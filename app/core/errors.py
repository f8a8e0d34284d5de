"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    limit: int
    resource: str
    resource_id: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when the bearer token is missing or cannot be verified."""


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist for the caller."""


class DirectoryUnavailableAppError(AppError):
    """Raised when the user directory cannot be queried."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a caller exhausted its request quota.

    Attributes:
        headers: Response headers (Retry-After, X-RateLimit-*) to attach.
    """

    headers: dict[str, str] | None = None
