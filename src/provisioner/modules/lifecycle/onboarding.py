"""Onboarding pipeline: one tenant from signup to Active."""

import asyncio

import structlog

from provisioner.core.errors import PartialDeploymentError, ProvisioningFailure
from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.fanout import DeploymentFanout, DeploymentResult
from provisioner.modules.identity import ServiceAccountProvisioner
from provisioner.modules.lifecycle.schemas import (
    ONBOARDING_STAGES,
    OnboardingResult,
    StageOutcome,
    StageStatus,
)
from provisioner.modules.resources import TenantResourceProvisioner
from provisioner.modules.routing import RoutingPatchGenerator
from provisioner.modules.tenants import TenantJobParams, TenantRegistry
from provisioner.modules.tenants.models import TenantPlan, TenantStatus


logger = structlog.get_logger()


class OnboardingPipeline:
    """Runs the onboarding stages for one tenant, strictly in order.

    The registry insert is the mutual-exclusion gate: a second request for
    the same tenant id is rejected before anything else happens. A failed
    stage leaves earlier outputs in place and marks the tenant Failed; a
    later retry skips the stages already recorded as applied.
    """

    def __init__(
        self,
        registry: TenantRegistry,
        catalog: ServiceCatalog,
        resources: TenantResourceProvisioner,
        identities: ServiceAccountProvisioner,
        routing: RoutingPatchGenerator,
        fanout: DeploymentFanout,
    ) -> None:
        self.registry = registry
        self.catalog = catalog
        self.resources = resources
        self.identities = identities
        self.routing = routing
        self.fanout = fanout

    async def onboard(
        self,
        company_name: str,
        admin_email: str,
        plan: str | TenantPlan,
        tenant_id: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> OnboardingResult:
        """Validate signup input and onboard the tenant.

        Raises:
            ValidationError: If the input is malformed (nothing is written)
            ResourceConflictError: If the tenant exists and is not Failed
        """
        params = TenantJobParams.from_signup(company_name, admin_email, plan, tenant_id)
        return await self.run(params, cancel=cancel)

    async def run(
        self,
        params: TenantJobParams,
        cancel: asyncio.Event | None = None,
    ) -> OnboardingResult:
        """Onboard a tenant from already validated parameters.

        Args:
            params: Validated job parameters
            cancel: When set, no further stage is started

        Returns:
            Result with the terminal status (Active or Failed)
        """
        tenant, resumed = await self.registry.register(params)
        tenant_id = params.tenant_id
        applied = list(tenant.completed_stages)
        result = OnboardingResult(
            tenant_id=tenant_id,
            status=TenantStatus.PROVISIONING,
            params=params,
            resumed=resumed,
        )
        log = logger.bind(tenant_id=tenant_id, operation="onboard")
        log.info("onboarding_started", resumed=resumed, completed_stages=applied)

        for index, stage in enumerate(ONBOARDING_STAGES, start=1):
            if stage in applied:
                result.stages.append(StageOutcome(name=stage, status=StageStatus.SKIPPED))
                continue

            if cancel is not None and cancel.is_set():
                return await self._fail(result, stage, index, "cancelled", applied)

            try:
                await self._run_stage(stage, params, result)
                await self.registry.mark_stage_applied(tenant_id, stage)
            except Exception as e:
                cause = str(e) or type(e).__name__
                return await self._fail(result, stage, index, cause, applied)

            applied.append(stage)
            result.stages.append(StageOutcome(name=stage, status=StageStatus.APPLIED))
            log.info("stage_completed", stage=stage, stage_index=index)

        if result.failed_services:
            result.error = PartialDeploymentError(result.failed_services)

        await self.registry.transition(
            tenant_id,
            TenantStatus.ACTIVE,
            expected=[TenantStatus.PROVISIONING],
            failed_stage=None,
            last_error=result.error.message if result.error else None,
        )
        result.status = TenantStatus.ACTIVE
        log.info(
            "onboarding_complete",
            deployed=result.deployed_services,
            failed=result.failed_services,
        )
        return result

    async def _run_stage(
        self,
        stage: str,
        params: TenantJobParams,
        result: OnboardingResult,
    ) -> None:
        tenant_id = params.tenant_id
        if stage == "resources":
            await self.resources.provision(tenant_id, params.plan)
        elif stage == "identity":
            await self.identities.provision_identity(tenant_id)
        elif stage == "routing":
            await self.routing.ensure_entry_point()
            rules = self.routing.generate_routes(tenant_id, self.catalog.services())
            await self.routing.publish_routes(rules)
        elif stage == "deployment":
            deployments: dict[str, DeploymentResult] = await self.fanout.deploy(tenant_id)
            result.deployments = deployments
        else:
            raise ValueError(f"Unknown onboarding stage: {stage}")

    async def _fail(
        self,
        result: OnboardingResult,
        stage: str,
        index: int,
        cause: str,
        applied: list[str],
    ) -> OnboardingResult:
        error = ProvisioningFailure(
            stage=stage,
            stage_index=index,
            stage_count=len(ONBOARDING_STAGES),
            cause=cause,
            applied_stages=applied,
        )
        await self.registry.transition(
            result.tenant_id,
            TenantStatus.FAILED,
            expected=[TenantStatus.PROVISIONING],
            failed_stage=stage,
            last_error=error.message,
        )
        result.stages.append(StageOutcome(name=stage, status=StageStatus.FAILED, error=cause))
        result.status = TenantStatus.FAILED
        result.error = error
        logger.error(
            "onboarding_failed",
            tenant_id=result.tenant_id,
            stage=stage,
            stage_index=index,
            error=cause,
            applied_stages=applied,
        )
        return result
