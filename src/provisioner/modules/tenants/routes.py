"""Lifecycle trigger API.

Onboarding, deprovisioning and rollback run as background jobs; the
endpoints validate the request, reject obvious conflicts early and return
the job id. ``GET /jobs/{job_id}`` reports the terminal result.
"""

from fastapi import APIRouter, Query, status

from provisioner.api.dependencies import JobQueueDep, OrchestratorDep
from provisioner.core.constants import DEPROVISION_JOB, ONBOARD_JOB, ROLLBACK_JOB
from provisioner.core.errors import (
    AppException,
    InvalidStateError,
    ResourceConflictError,
)
from provisioner.modules.routing import EntryPoint
from provisioner.modules.tenants.models import TenantStatus
from provisioner.modules.tenants.schemas import (
    JobAccepted,
    JobStatusRead,
    OnboardRequest,
    TenantJobParams,
    TenantRead,
)


router = APIRouter(tags=["tenants"])


@router.post(
    "/tenants",
    response_model=JobAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Onboard a tenant",
    description="Validates the signup and enqueues the onboarding job.",
)
async def onboard(
    data: OnboardRequest,
    orchestrator: OrchestratorDep,
    queue: JobQueueDep,
) -> JobAccepted:
    """Enqueue onboarding for a new (or Failed) tenant."""
    params = TenantJobParams.from_signup(
        company_name=data.company_name,
        admin_email=str(data.admin_email),
        plan=data.plan,
        tenant_id=data.tenant_id,
    )
    existing = await orchestrator.registry.get(params.tenant_id)
    if existing is not None and existing.status is not TenantStatus.FAILED:
        raise ResourceConflictError(
            f"Tenant '{params.tenant_id}' already exists",
            details={"tenant_id": params.tenant_id, "status": str(existing.status)},
        )

    job_id = await queue.enqueue(ONBOARD_JOB, **params.to_trigger())
    return JobAccepted(job_id=job_id, tenant_id=params.tenant_id, operation="onboard")


@router.get(
    "/tenants",
    response_model=list[TenantRead],
    summary="List tenants",
)
async def list_tenants(
    orchestrator: OrchestratorDep,
    status_filter: TenantStatus | None = Query(None, alias="status"),
) -> list[TenantRead]:
    tenants = await orchestrator.registry.list_tenants(status_filter)
    return [TenantRead.model_validate(t) for t in tenants]


@router.get(
    "/tenants/{tenant_id}",
    response_model=TenantRead,
    summary="Get a tenant",
)
async def get_tenant(tenant_id: str, orchestrator: OrchestratorDep) -> TenantRead:
    tenant = await orchestrator.registry.require(tenant_id)
    return TenantRead.model_validate(tenant)


@router.delete(
    "/tenants/{tenant_id}",
    response_model=JobAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Deprovision a tenant",
)
async def deprovision(
    tenant_id: str,
    orchestrator: OrchestratorDep,
    queue: JobQueueDep,
    force: bool = False,
) -> JobAccepted:
    """Enqueue deprovisioning of an Active or Failed tenant."""
    tenant = await orchestrator.registry.require(tenant_id)
    if tenant.status is TenantStatus.DELETED:
        raise InvalidStateError(
            f"Tenant '{tenant_id}' is already deleted",
            details={"tenant_id": tenant_id, "status": str(tenant.status)},
        )

    job_id = await queue.enqueue(DEPROVISION_JOB, TENANT_ID=tenant_id, FORCE=force)
    return JobAccepted(job_id=job_id, tenant_id=tenant_id, operation="deprovision")


@router.post(
    "/tenants/{tenant_id}/rollback",
    response_model=JobAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Roll back a Failed tenant",
)
async def rollback(
    tenant_id: str,
    orchestrator: OrchestratorDep,
    queue: JobQueueDep,
) -> JobAccepted:
    tenant = await orchestrator.registry.require(tenant_id)
    if tenant.status is not TenantStatus.FAILED:
        raise InvalidStateError(
            f"Only Failed tenants can be rolled back; '{tenant_id}' is {tenant.status}",
            details={"tenant_id": tenant_id, "status": str(tenant.status)},
        )

    job_id = await queue.enqueue(ROLLBACK_JOB, TENANT_ID=tenant_id)
    return JobAccepted(job_id=job_id, tenant_id=tenant_id, operation="rollback")


@router.get(
    "/jobs/{job_id}",
    response_model=JobStatusRead,
    summary="Get a lifecycle job's status",
)
async def get_job(job_id: str, queue: JobQueueDep) -> JobStatusRead:
    job_status, result = await queue.status(job_id)
    if isinstance(result, AppException):
        result = {
            "error": {
                "code": result.error_code,
                "message": result.message,
                "details": result.details,
            }
        }
    elif isinstance(result, Exception):
        result = {"error": {"code": "internal_error", "message": str(result)}}
    return JobStatusRead(job_id=job_id, status=job_status.value, result=result)


@router.get(
    "/routes",
    response_model=EntryPoint,
    summary="Composed routing entry point",
)
async def routes(orchestrator: OrchestratorDep) -> EntryPoint:
    return await orchestrator.routing.entry_point()
