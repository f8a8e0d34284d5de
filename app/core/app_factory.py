from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, database, rate limiting, middleware,
handlers, routers) so tests can build isolated instances.
"""

import logging
import time
from typing import Callable

from fastapi import FastAPI

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.api.routes import (
    health_router,
    todo_router,
    todo_v1_router,
    todo_v2_router,
    users_router,
)
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import SUPPORTED_API_VERSIONS, request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import RateLimitComponents
from app.db.crud.users import SqlAlchemyUserDirectory
from app.db.session import build_engine, get_session_maker, init_db
from app.services.identity import IdentityExtractor
from app.services.quota_service import QuotaResolver
from app.services.user_service import anonymous_profile, default_authenticated_profile
from app.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)


def build_rate_limit_components(
    session_factory,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> RateLimitComponents:
    """Assemble extractor, resolver (with profile cache) and admission controller."""
    cfg = settings.app

    cache: SimpleTTLCache | None = None
    if cfg.quota_cache_ttl_seconds > 0:
        cache = SimpleTTLCache(
            ttl_seconds=cfg.quota_cache_ttl_seconds,
            max_entries=cfg.quota_cache_max_entries,
            clock=clock,
        )

    return RateLimitComponents(
        extractor=IdentityExtractor(claim=settings.auth.identity_claim),
        resolver=QuotaResolver(
            SqlAlchemyUserDirectory(session_factory),
            anonymous_profile=anonymous_profile(cfg),
            default_profile=default_authenticated_profile(cfg),
            cache=cache,
        ),
        controller=InMemoryFixedWindowRateLimiter(
            max_partitions=cfg.rate_limit_max_partitions,
            clock=clock,
        ),
    )


def create_app(*, clock: Callable[[], float] = time.monotonic) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        clock: Time source for rate-limit windows and the profile cache.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Todo API",
        description=(
            "Versioned Todo-list API. Requests are authenticated with a JWT bearer "
            "token and rate limited per identity: anonymous callers share one quota, "
            "authenticated callers get their personalised or the default quota, and "
            "exceeding it returns 429 with Retry-After."
        ),
        version="1.0.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Database
    engine = build_engine(settings.db)
    init_db(engine)
    app.state.engine = engine
    app.state.session_factory = get_session_maker(engine)

    # Rate limiting
    app.state.rate_limit = build_rate_limit_components(app.state.session_factory, clock=clock)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    for version in SUPPORTED_API_VERSIONS:
        prefix = f"/api/v{version}"
        app.include_router(todo_v1_router if version == 1 else todo_v2_router, prefix=prefix)
        app.include_router(todo_router, prefix=prefix)
        app.include_router(users_router, prefix=prefix)
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app, versions=SUPPORTED_API_VERSIONS)

    logger.info(
        "app.started",
        extra={
            "app_env": settings.app_env,
            "api_versions": list(SUPPORTED_API_VERSIONS),
            "rate_limit_enabled": settings.app.rate_limit_enabled,
        },
    )
    return app
