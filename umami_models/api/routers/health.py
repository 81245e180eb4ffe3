"""
Health check endpoints.

/health/live  - liveness: is the process running?
/health/ready - readiness: can the reader reach the Umami database?
/health       - full status with version and schema prefix
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from umami_models.api.deps import get_analytics_reader
from umami_models.core.config import get_settings
from umami_models.core.exceptions import QueryExecutionError
from umami_models.core.logging import get_logger
from umami_models.services.reader import AnalyticsReader

router = APIRouter()
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    timestamp: datetime
    database: str
    table_prefix: str


async def _database_status(reader: AnalyticsReader) -> str:
    try:
        return "connected" if await reader.ping() else "unreachable"
    except QueryExecutionError as exc:
        logger.warning("health.database_unreachable", error=exc)
        return "unreachable"


@router.get("/live", status_code=200, summary="Liveness probe")
async def liveness():
    return {"status": "alive"}


@router.get("/ready", status_code=200, summary="Readiness probe")
async def readiness(reader: AnalyticsReader = Depends(get_analytics_reader)):
    db_status = await _database_status(reader)
    return {"status": "ready" if db_status == "connected" else "degraded", "database": db_status}


@router.get("", response_model=HealthResponse, summary="Full health status")
async def health(reader: AnalyticsReader = Depends(get_analytics_reader)):
    settings = get_settings()
    db_status = await _database_status(reader)

    return HealthResponse(
        status="healthy" if db_status == "connected" else "degraded",
        version=settings.API_VERSION,
        environment=settings.ENVIRONMENT,
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        table_prefix=reader.config.table_prefix,
    )
