"""HTTP middleware for request correlation, timing and version reporting.

The middleware:
- Accepts incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars for access throughout the request lifecycle
- Injects request_id and X-Request-Duration-ms into every response
- On the versioned API (``/api/...``) also reports ``X-Response-Time`` and the
  supported API versions

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id

API_PREFIX = "/api/"
SUPPORTED_API_VERSIONS = (1, 2)
SUPPORTED_VERSIONS_HEADER = "api-supported-versions"


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation, timing and version headers.

    If the client provides an X-Request-ID header (configurable via
    LOG_REQUEST_ID_HEADER), that value is used. Otherwise, a new UUID is
    generated. The ID is propagated back in the response headers and stored
    in contextvars for log correlation.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with correlation and
            timing headers added.

    Example:
        >>> # GET /api/v1/todoitems/ with {"X-Request-ID": "req-abc-123"}
        >>> # Response includes:
        >>> # {"X-Request-ID": "req-abc-123", "X-Request-Duration-ms": "4.67",
        >>> #  "X-Response-Time": "4 milliseconds", "api-supported-versions": "1, 2"}
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")

    if request.url.path.startswith(API_PREFIX):
        response.headers.setdefault("X-Response-Time", f"{int(duration_ms)} milliseconds")
        response.headers[SUPPORTED_VERSIONS_HEADER] = ", ".join(
            str(v) for v in SUPPORTED_API_VERSIONS
        )
    return response
