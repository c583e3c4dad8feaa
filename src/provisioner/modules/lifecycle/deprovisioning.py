"""Deprovisioning and rollback pipelines."""

import structlog

from provisioner.core.errors import InvalidStateError, ProvisioningFailure
from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.fanout import DeploymentFanout
from provisioner.modules.identity import ServiceAccountProvisioner
from provisioner.modules.lifecycle.schemas import (
    DEPROVISIONING_STAGES,
    ONBOARDING_STAGES,
    DeprovisioningResult,
    StageOutcome,
    StageStatus,
)
from provisioner.modules.resources import TenantResourceProvisioner
from provisioner.modules.routing import RoutingPatchGenerator
from provisioner.modules.tenants import TenantRegistry
from provisioner.modules.tenants.models import Tenant, TenantStatus


logger = structlog.get_logger()

IN_FLIGHT = (TenantStatus.PROVISIONING, TenantStatus.DEPROVISIONING)


class DeprovisioningPipeline:
    """Removes a tenant's routes and data stores, then marks it Deleted.

    Stages are best-effort and independent: every stage is attempted even
    if an earlier one failed. Any failure leaves the tenant Failed for an
    operator to re-run; nothing is retried automatically. Identities and
    deployments live in the tenant namespace and go away with it.
    """

    def __init__(
        self,
        registry: TenantRegistry,
        catalog: ServiceCatalog,
        resources: TenantResourceProvisioner,
        routing: RoutingPatchGenerator,
        fanout: DeploymentFanout,
    ) -> None:
        self.registry = registry
        self.catalog = catalog
        self.resources = resources
        self.routing = routing
        self.fanout = fanout

    async def deprovision(self, tenant_id: str, force: bool = False) -> DeprovisioningResult:
        """Deprovision an Active or Failed tenant.

        Args:
            tenant_id: The tenant's id
            force: Also take over a tenant stuck in Provisioning or
                Deprovisioning (e.g. after a worker crash)

        Raises:
            NotFoundError: If the tenant does not exist
            InvalidStateError: If the tenant is Deleted, or in flight
                without ``force``
        """
        tenant = await self.registry.require(tenant_id)
        await self._claim(tenant, force)

        result = DeprovisioningResult(tenant_id=tenant_id, status=TenantStatus.DEPROVISIONING)
        log = logger.bind(tenant_id=tenant_id, operation="deprovision")
        log.info("deprovisioning_started", forced=force)

        failures: list[tuple[int, str, str]] = []
        for index, stage in enumerate(DEPROVISIONING_STAGES, start=1):
            try:
                if stage == "routing":
                    result.removed_routes = await self.routing.remove_routes(
                        tenant_id, self.catalog.services()
                    )
                else:
                    result.removed_resources = await self.resources.teardown(
                        tenant_id, tenant.plan
                    )
            except Exception as e:
                cause = str(e) or type(e).__name__
                failures.append((index, stage, cause))
                result.stages.append(
                    StageOutcome(name=stage, status=StageStatus.FAILED, error=cause)
                )
                log.error("deprovision_stage_failed", stage=stage, error=cause)
                continue

            await self.registry.mark_stage_reverted(tenant_id, stage)
            result.stages.append(StageOutcome(name=stage, status=StageStatus.REVERTED))

        if failures:
            index, stage, _ = failures[0]
            result.error = ProvisioningFailure(
                stage=stage,
                stage_index=index,
                stage_count=len(DEPROVISIONING_STAGES),
                cause="; ".join(f"{s}: {c}" for _, s, c in failures),
                applied_stages=[
                    o.name for o in result.stages if o.status is StageStatus.REVERTED
                ],
            )
            await self.registry.transition(
                tenant_id,
                TenantStatus.FAILED,
                expected=[TenantStatus.DEPROVISIONING],
                failed_stage=stage,
                last_error=result.error.message,
            )
            result.status = TenantStatus.FAILED
            return result

        await self.fanout.forget(tenant_id)
        await self.registry.transition(
            tenant_id,
            TenantStatus.DELETED,
            expected=[TenantStatus.DEPROVISIONING],
            completed_stages=[],
            failed_stage=None,
            last_error=None,
        )
        result.status = TenantStatus.DELETED
        log.info("deprovisioning_complete", routes=result.removed_routes)
        return result

    async def _claim(self, tenant: Tenant, force: bool) -> None:
        if tenant.status is TenantStatus.DELETED:
            raise InvalidStateError(
                f"Tenant '{tenant.tenant_id}' is already deleted",
                details={"tenant_id": tenant.tenant_id, "status": str(tenant.status)},
            )
        if tenant.status in IN_FLIGHT:
            if not force:
                raise InvalidStateError(
                    f"Tenant '{tenant.tenant_id}' is {tenant.status}; "
                    "wait for it to finish or use force",
                    details={"tenant_id": tenant.tenant_id, "status": str(tenant.status)},
                )
            await self.registry.transition(
                tenant.tenant_id,
                TenantStatus.FAILED,
                expected=[tenant.status],
                last_error=f"forced out of {tenant.status}",
            )
            logger.warning("tenant_forced_to_failed", tenant_id=tenant.tenant_id)

        await self.registry.transition(
            tenant.tenant_id,
            TenantStatus.DEPROVISIONING,
            expected=[TenantStatus.ACTIVE, TenantStatus.FAILED],
            last_operation="deprovision",
        )


class RollbackPipeline:
    """Compensates a Failed onboarding, newest stage first.

    Each compensation that succeeds is removed from the tenant's completed
    stages, so a failed rollback records exactly what is left to undo and
    can simply be run again.
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

    async def rollback(self, tenant_id: str) -> DeprovisioningResult:
        """Undo every applied onboarding stage of a Failed tenant.

        Raises:
            NotFoundError: If the tenant does not exist
            InvalidStateError: If the tenant is not Failed
        """
        tenant = await self.registry.require(tenant_id)
        if tenant.status is not TenantStatus.FAILED:
            raise InvalidStateError(
                f"Only Failed tenants can be rolled back; '{tenant_id}' is {tenant.status}",
                details={"tenant_id": tenant_id, "status": str(tenant.status)},
            )

        # The failed stage may have left partial output behind
        pending = set(tenant.completed_stages)
        if tenant.failed_stage in ONBOARDING_STAGES:
            pending.add(tenant.failed_stage)
        compensations = [s for s in reversed(ONBOARDING_STAGES) if s in pending]

        await self.registry.transition(
            tenant_id,
            TenantStatus.DEPROVISIONING,
            expected=[TenantStatus.FAILED],
            last_operation="rollback",
        )
        result = DeprovisioningResult(
            tenant_id=tenant_id,
            operation="rollback",
            status=TenantStatus.DEPROVISIONING,
        )
        log = logger.bind(tenant_id=tenant_id, operation="rollback")
        log.info("rollback_started", compensations=compensations)

        for index, stage in enumerate(compensations, start=1):
            try:
                await self._compensate(stage, tenant, result)
            except Exception as e:
                cause = str(e) or type(e).__name__
                result.stages.append(
                    StageOutcome(name=stage, status=StageStatus.FAILED, error=cause)
                )
                result.error = ProvisioningFailure(
                    stage=stage,
                    stage_index=index,
                    stage_count=len(compensations),
                    cause=cause,
                    applied_stages=compensations[index - 1 :],
                )
                await self.registry.transition(
                    tenant_id,
                    TenantStatus.FAILED,
                    expected=[TenantStatus.DEPROVISIONING],
                    failed_stage=stage,
                    last_error=result.error.message,
                )
                result.status = TenantStatus.FAILED
                log.error("rollback_failed", stage=stage, error=cause)
                return result

            await self.registry.mark_stage_reverted(tenant_id, stage)
            result.stages.append(StageOutcome(name=stage, status=StageStatus.REVERTED))

        await self.fanout.forget(tenant_id)
        await self.registry.transition(
            tenant_id,
            TenantStatus.DELETED,
            expected=[TenantStatus.DEPROVISIONING],
            completed_stages=[],
            failed_stage=None,
            last_error=None,
        )
        result.status = TenantStatus.DELETED
        log.info("rollback_complete")
        return result

    async def _compensate(
        self,
        stage: str,
        tenant: Tenant,
        result: DeprovisioningResult,
    ) -> None:
        if stage == "deployment":
            outcomes = await self.fanout.teardown(tenant.tenant_id)
            failed = sorted(n for n, r in outcomes.items() if not r.removed)
            if failed:
                raise RuntimeError(f"teardown failed for: {', '.join(failed)}")
        elif stage == "routing":
            result.removed_routes = await self.routing.remove_routes(
                tenant.tenant_id, self.catalog.services()
            )
        elif stage == "identity":
            await self.identities.remove_identity(tenant.tenant_id)
        elif stage == "resources":
            result.removed_resources = await self.resources.teardown(
                tenant.tenant_id, tenant.plan
            )
        else:
            raise ValueError(f"Unknown onboarding stage: {stage}")
