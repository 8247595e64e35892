"""Health check API routes."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from proficiency.shared.database import get_health_status
from proficiency.shared.feature_flags import is_database_persistence_enabled
from proficiency.shared.service_registry import get_service_registry

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(
        ...,
        description="Overall health status",
    )
    version: str = Field(
        default="1.0.0",
        description="API version",
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str = Field(
        ...,
        description="Overall readiness status",
    )
    database: str = Field(
        ...,
        description="Database connection status, or 'disabled' for in-memory stores",
    )
    services: dict[str, str] = Field(
        default_factory=dict,
        description="Store implementation per module",
    )


class LivenessResponse(BaseModel):
    """Liveness check response."""

    status: str = Field(
        default="alive",
        description="Liveness status",
    )


@router.get(
    "",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Simple health check endpoint.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Check if the service is ready to accept traffic.",
)
async def readiness_check():
    """Readiness check with dependency verification.

    The database is only checked when database persistence is enabled.

    Returns:
        Readiness status with component details (503 when not ready)
    """
    registry = get_service_registry()
    registry.get_progression_service()
    services = registry.get_service_info()

    if not is_database_persistence_enabled():
        return ReadinessResponse(status="ready", database="disabled", services=services)

    health = await get_health_status()
    database = "healthy" if health["database"]["healthy"] else "unhealthy"
    response = ReadinessResponse(
        status="ready" if health["overall"] else "not_ready",
        database=database,
        services=services,
    )
    if not health["overall"]:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )
    return response


@router.get(
    "/live",
    response_model=LivenessResponse,
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> LivenessResponse:
    return LivenessResponse()
