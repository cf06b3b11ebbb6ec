"""
Health check endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from catalog_etl.api.deps import AsyncSessionDep
from catalog_etl.core.config import settings
from catalog_etl.core.database import check_database_health
from catalog_etl.schemas.common import HealthCheckResponse, ReadinessResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Basic health check"""
    return HealthCheckResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=settings.VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_probe(session: AsyncSessionDep) -> ReadinessResponse:
    """Readiness probe; the store is the only dependency checked on every call"""
    checks = {"database": await check_database_health(session)}

    return ReadinessResponse(
        status="ok" if all(checks.values()) else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        checks=checks,
    )
