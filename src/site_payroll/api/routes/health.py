"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from site_payroll import __version__
from site_payroll.api.dependencies import AppSettings, DbSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
    database: str
    data_source: str


async def _database_reachable(db: DbSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc)
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession, settings: AppSettings) -> HealthResponse:
    """Report API, database and data source status.

    The fake data source does not need the database, so an unreachable
    database only degrades the status.
    """
    healthy = await _database_reachable(db)

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        database="healthy" if healthy else "unhealthy",
        data_source=settings.data_source.value,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(db: DbSession, response: Response) -> dict[str, str]:
    """Ready once the database answers."""
    if not await _database_reachable(db):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready"}
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness probe; no dependencies."""
    return {"status": "alive"}
