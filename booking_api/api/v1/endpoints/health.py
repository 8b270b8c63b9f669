"""Health check endpoints."""

import time

from fastapi import APIRouter, status
from pydantic import BaseModel

from booking_api.config import settings
from booking_api.core.redis_client import check_redis_connection
from booking_api.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    service: str
    version: str
    environment: str


class ComponentHealth(BaseModel):
    """State of one backing service."""

    status: str
    latency_ms: float


class DetailedHealthResponse(HealthResponse):
    """Health of the API and the stores it depends on."""

    components: dict[str, ComponentHealth]


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Report that the API process is up."""
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Check the appointment store and the provider cache.

    The cache fails open, so an unreachable Redis only degrades the service.
    """
    components: dict[str, ComponentHealth] = {}
    for name, check in (("database", check_database_connection), ("cache", check_redis_connection)):
        started = time.perf_counter()
        healthy = await check()
        components[name] = ComponentHealth(
            status="healthy" if healthy else "unhealthy",
            latency_ms=round((time.perf_counter() - started) * 1000, 2),
        )

    if components["database"].status != "healthy":
        overall = "unhealthy"
    elif components["cache"].status != "healthy":
        overall = "degraded"
    else:
        overall = "healthy"

    return DetailedHealthResponse(
        status=overall,
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        components=components,
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """Liveness probe."""
    return {"message": "pong"}
