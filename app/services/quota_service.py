"""Rate-limit profile resolution.

Maps an identity key to the quota it is admitted under:

- anonymous callers get the anonymous profile;
- identities with a directory record get their stored profile;
- identities without a record get the default authenticated profile;
- a failing directory fails open to the default authenticated profile.

Resolved profiles are cached (cache-aside) for at most the shortest window
length involved, and dropped explicitly when a profile is updated.
"""

from __future__ import annotations

import logging
from typing import Protocol

from app.adapters.rate_limit.base import RateLimitProfile
from app.core.errors import DirectoryUnavailableAppError
from app.services.identity import ANONYMOUS
from app.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    def lookup(self, email: str) -> RateLimitProfile | None:
        """Return the stored profile, None if not registered.

        Raises DirectoryUnavailableAppError when the lookup cannot be made.
        """
        ...


class QuotaResolver:
    """Resolve the RateLimitProfile of an identity key.

    Args:
        directory: User directory used for personalised profiles.
        anonymous_profile: Profile of callers without a token.
        default_profile: Profile of identities with no directory record.
        cache: Optional profile cache; entries never outlive a window.
    """

    def __init__(
        self,
        directory: UserDirectory,
        *,
        anonymous_profile: RateLimitProfile,
        default_profile: RateLimitProfile,
        cache: SimpleTTLCache[RateLimitProfile] | None = None,
    ) -> None:
        self._directory = directory
        self.anonymous_profile = anonymous_profile
        self.default_profile = default_profile
        self._cache = cache

    def resolve(self, identity_key: str) -> RateLimitProfile:
        if identity_key == ANONYMOUS:
            return self.anonymous_profile

        if self._cache is not None:
            cached = self._cache.get(identity_key)
            if cached is not None:
                return cached

        try:
            profile = self._directory.lookup(identity_key)
        except DirectoryUnavailableAppError as exc:
            # Fail open: a directory outage must not lock out every caller.
            logger.warning(
                "quota.directory_unavailable",
                extra={"error_code": exc.code, "fallback": "default_authenticated"},
            )
            return self.default_profile

        if profile is None:
            profile = self.default_profile
            logger.debug("quota.identity_not_found", extra={"identity": identity_key})

        if self._cache is not None:
            ttl = min(self._cache.ttl_seconds, profile.window_seconds)
            self._cache.set(identity_key, profile, ttl_seconds=ttl)

        return profile

    def invalidate(self, identity_key: str) -> None:
        """Forget the cached profile of identity_key (after a profile update)."""
        if self._cache is not None and self._cache.invalidate(identity_key):
            logger.debug("quota.cache_invalidated", extra={"identity": identity_key})
