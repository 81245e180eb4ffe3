"""
Umami Read Models - diagnostic HTTP API.

A thin, read-only surface over AnalyticsReader for checking that a deployment
can reach its Umami database: health probes plus a few website reports.

Run with: uvicorn umami_models.api.main:app  (pip install ".[server]")
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from umami_models.api.middleware import RequestLogMiddleware
from umami_models.api.routers import health, websites
from umami_models.core.config import get_settings
from umami_models.core.exceptions import (
    ConfigurationError,
    QueryExecutionError,
    ReadOnlyViolation,
)
from umami_models.core.logging import get_logger, setup_logging
from umami_models.services import reader as reader_service

setup_logging()
logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure the default reader from the environment; dispose it on shutdown."""
    logger.info("api.startup", version=settings.API_VERSION, env=settings.ENVIRONMENT)
    reader = reader_service.configure()
    await reader.ping()
    logger.info("api.database_ready", table_prefix=reader.config.table_prefix)
    yield
    await reader_service.reset()
    logger.info("api.shutdown")


app = FastAPI(
    title="Umami Read Models",
    description="Read-only diagnostics over an Umami analytics database.",
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(RequestLogMiddleware)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


# ── Exception handlers ─────────────────────────────────────────────────────────
@app.exception_handler(QueryExecutionError)
async def query_error_handler(request: Request, exc: QueryExecutionError):
    logger.error("api.query_failed", path=request.url.path, error=exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Analytics database unavailable", "request_id": _request_id(request)},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("api.not_configured", path=request.url.path, error=exc)
    return JSONResponse(
        status_code=503,
        content={"detail": exc.message, "request_id": _request_id(request)},
    )


@app.exception_handler(ReadOnlyViolation)
async def read_only_handler(request: Request, exc: ReadOnlyViolation):
    logger.warning("api.read_only_violation", path=request.url.path, error=exc)
    return JSONResponse(
        status_code=405,
        content={"detail": exc.message, "request_id": _request_id(request)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "api.unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": _request_id(request)},
    )


# ── Routers ────────────────────────────────────────────────────────────────────
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(websites.router, prefix="/api/v1/websites", tags=["Websites"])
