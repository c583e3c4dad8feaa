"""Tenant lifecycle jobs.

The worker context holds an ``orchestrator`` built at startup. Each job
parses its named trigger parameters once and returns the JSON summary of
the pipeline's terminal result.
"""

from typing import Any

import structlog

from provisioner.modules.lifecycle import Orchestrator
from provisioner.modules.tenants import TenantJobParams


log = structlog.get_logger()


async def onboard_tenant(
    ctx: dict[str, Any],
    TENANT_ID: str = "",  # noqa: N803
    COMPANY_NAME: str = "",  # noqa: N803
    ADMIN_EMAIL: str = "",  # noqa: N803
    PLAN: str = "",  # noqa: N803
) -> dict[str, Any]:
    """Onboarding trigger.

    Args:
        ctx: Worker context containing the orchestrator
        TENANT_ID: Optional tenant id; derived from COMPANY_NAME when empty
        COMPANY_NAME: Company name from signup
        ADMIN_EMAIL: Tenant administrator's email
        PLAN: ``pooled`` or ``silo``

    Returns:
        Summary of the onboarding result
    """
    orchestrator: Orchestrator = ctx["orchestrator"]
    params = TenantJobParams.from_trigger(
        {
            "TENANT_ID": TENANT_ID,
            "COMPANY_NAME": COMPANY_NAME,
            "ADMIN_EMAIL": ADMIN_EMAIL,
            "PLAN": PLAN,
        }
    )
    structlog.contextvars.bind_contextvars(
        job_id=ctx.get("job_id"), tenant_id=params.tenant_id
    )
    result = await orchestrator.onboarding.run(params)
    log.info("onboard_job_finished", status=str(result.status))
    return result.summary()


async def deprovision_tenant(
    ctx: dict[str, Any],
    TENANT_ID: str,  # noqa: N803
    FORCE: bool = False,  # noqa: N803
) -> dict[str, Any]:
    """Deprovisioning trigger."""
    orchestrator: Orchestrator = ctx["orchestrator"]
    structlog.contextvars.bind_contextvars(job_id=ctx.get("job_id"), tenant_id=TENANT_ID)
    result = await orchestrator.deprovisioning.deprovision(TENANT_ID, force=FORCE)
    log.info("deprovision_job_finished", status=str(result.status))
    return result.summary()


async def rollback_tenant(ctx: dict[str, Any], TENANT_ID: str) -> dict[str, Any]:  # noqa: N803
    """Saga rollback of a Failed tenant."""
    orchestrator: Orchestrator = ctx["orchestrator"]
    structlog.contextvars.bind_contextvars(job_id=ctx.get("job_id"), tenant_id=TENANT_ID)
    result = await orchestrator.rollbacks.rollback(TENANT_ID)
    log.info("rollback_job_finished", status=str(result.status))
    return result.summary()
