"""User directory operations."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.adapters.rate_limit.base import RateLimitProfile
from app.core.errors import DirectoryUnavailableAppError
from app.db.models import User

logger = logging.getLogger(__name__)


def get_user_by_email(session: Session, email: str) -> User | None:
    """Find a user by email.

    Args:
        session: Database session.
        email: Identity claim value.

    Returns:
        User if found, None otherwise.
    """
    return session.execute(select(User).where(User.email == email)).scalar_one_or_none()


def get_or_create_user(session: Session, email: str, default_profile: RateLimitProfile) -> User:
    """Return the user record for email, creating it with default_profile if absent.

    A concurrent first write for the same email loses the insert race on the
    unique email index; the session is rolled back and the winner's row is
    returned instead.
    """
    user = get_user_by_email(session, email)
    if user is not None:
        return user

    user = User(
        email=email,
        permit_limit=default_profile.permit_limit,
        rate_limit_window_minutes=default_profile.window_minutes,
    )
    session.add(user)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        logger.info("user.create_conflict", extra={"outcome": "reused_existing"})
        return _existing_user(session, email)

    logger.info("user.created", extra={"user_id": user.id})
    return user


def upsert_rate_limit_profile(
    session: Session,
    email: str,
    profile: RateLimitProfile,
) -> User:
    """Store profile as the personalised quota of email."""
    user = get_user_by_email(session, email)
    if user is None:
        user = User(
            email=email,
            permit_limit=profile.permit_limit,
            rate_limit_window_minutes=profile.window_minutes,
        )
        session.add(user)
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            user = _existing_user(session, email)

    user.permit_limit = profile.permit_limit
    user.rate_limit_window_minutes = profile.window_minutes
    session.commit()
    session.refresh(user)
    return user


def _existing_user(session: Session, email: str) -> User:
    user = get_user_by_email(session, email)
    if user is None:
        # Conflicting row was deleted before it could be read
        raise DirectoryUnavailableAppError(
            code="directory_unavailable",
            message="User record could not be created or read",
        )
    return user


class SqlAlchemyUserDirectory:
    """Read-only profile lookup used by the quota resolver.

    Opens a short-lived session per lookup so it can be called from the rate
    limiter outside of any request-scoped session.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def lookup(self, email: str) -> RateLimitProfile | None:
        """Return the stored profile for email, or None when not registered.

        Raises:
            DirectoryUnavailableAppError: If the database cannot be queried.
        """
        try:
            with self._session_factory() as session:
                user = get_user_by_email(session, email)
                if user is None:
                    return None
                return RateLimitProfile(
                    permit_limit=user.permit_limit,
                    window_minutes=user.rate_limit_window_minutes,
                )
        except SQLAlchemyError as exc:
            raise DirectoryUnavailableAppError(
                code="directory_unavailable",
                message="User directory lookup failed",
                details={"context": {"error_type": type(exc).__name__}},
            ) from exc
