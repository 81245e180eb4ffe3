"""
Request log middleware - one structured entry per request.

The request_id (also returned as X-Request-ID) is bound into structlog's
contextvars for the duration of the request, so query.executed and
query.failed entries emitted by the reader carry it too. The closing
http.request entry adds the number of statements the request ran, the rows
they returned and the time spent in the database.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from umami_models.core.database import track_queries
from umami_models.core.logging import get_logger

logger = get_logger(__name__)

SKIP_PATHS = {"/health", "/health/live", "/health/ready", "/docs", "/redoc", "/openapi.json"}

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # A caller-supplied id lets traces span the proxy in front of us
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        with structlog.contextvars.bound_contextvars(request_id=request_id), track_queries() as stats:
            response = await call_next(request)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-DB-Queries"] = str(stats.queries)

        if request.url.path in SKIP_PATHS:
            return response

        log_fn = logger.warning if response.status_code >= 400 or stats.failures else logger.info
        log_fn(
            "http.request",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            queries=stats.queries,
            query_failures=stats.failures,
            rows=stats.rows,
            db_ms=round(stats.duration_ms, 2),
        )
        return response
