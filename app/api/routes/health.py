from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.rate_limit import enforce_rate_limit
from app.db.session import ping
from app.schemas.health import HealthReport

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthReport,
    dependencies=[Depends(enforce_rate_limit)],
    responses={503: {"model": HealthReport, "description": "Database unreachable"}},
)
def health_check(request: Request):
    """Health check endpoint.

    Verifies the database answers a trivial query. Used by load balancers and
    monitoring systems; rate limited like every other endpoint, anonymous
    callers share the anonymous quota.

    Returns:
        HealthReport with status "healthy" (200) or "unhealthy" (503).
    """

    try:
        ping(request.app.state.engine)
    except SQLAlchemyError as exc:
        logger.error("health.database_unreachable", extra={"error_type": type(exc).__name__})
        report = HealthReport(status="unhealthy", checks={"database": "unhealthy"})
        return JSONResponse(status_code=503, content=report.model_dump())

    return HealthReport(status="healthy", checks={"database": "healthy"})
