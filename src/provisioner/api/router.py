"""Root API router: probes, service info and the versioned trigger API."""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from provisioner import __version__
from provisioner.api.dependencies import DBSession, OrchestratorDep
from provisioner.config import settings
from provisioner.core.jobs import get_arq_pool
from provisioner.modules.tenants.routes import router as tenants_router


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Outcome of each dependency check; ``ok`` or the error message."""

    status: str
    checks: dict[str, str]


async def _probe(check: Callable[[], Awaitable[Any]]) -> str:
    try:
        await check()
    except Exception as e:
        return str(e) or type(e).__name__
    return "ok"


health_router = APIRouter(tags=["health"])


@health_router.get("/health/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    return HealthResponse(status="alive")


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Ready when the tenant registry and the job queue both answer.",
)
async def readiness(db: DBSession) -> JSONResponse:
    async def ping_queue() -> None:
        pool = await get_arq_pool()
        await pool.ping()

    checks = {
        "database": await _probe(lambda: db.execute(text("SELECT 1"))),
        "queue": await _probe(ping_queue),
    }
    ready = all(result == "ok" for result in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ReadinessResponse(
            status="ready" if ready else "degraded", checks=checks
        ).model_dump(),
    )


@health_router.get("/info", summary="Orchestrator info")
async def info(orchestrator: OrchestratorDep) -> dict[str, Any]:
    """Version, shared entry point host and the fan-out targets."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "api_host": settings.api_host,
        "services": orchestrator.catalog.names(),
    }


v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(tenants_router)

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(v1_router)
