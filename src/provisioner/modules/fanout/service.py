"""Parallel fan-out of per-tenant deploy jobs to downstream services."""

import asyncio
from collections.abc import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from provisioner.modules.catalog import ServiceCatalog, ServiceDefinition
from provisioner.modules.fanout.schemas import (
    DeployJobParams,
    DeploymentResult,
    TeardownResult,
)
from provisioner.modules.fanout.triggers import DeployTrigger
from provisioner.modules.tenants.models import DeploymentStatus, ServiceDeploymentRecord
from provisioner.modules.tenants.repos import DeploymentRecordRepository


logger = structlog.get_logger()


class DeploymentFanout:
    """Triggers every selected service's tenant deploy job concurrently.

    Targets are independent: one failing job neither blocks nor rolls back
    the others. There is no automatic retry; re-invoking ``deploy`` for a
    single service is idempotent.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        trigger: DeployTrigger,
        catalog: ServiceCatalog,
    ) -> None:
        self.session_factory = session_factory
        self.trigger = trigger
        self.catalog = catalog

    async def deploy(
        self,
        tenant_id: str,
        services: Iterable[str] | None = None,
    ) -> dict[str, DeploymentResult]:
        """Deploy ``services`` (default: the whole catalog) into a tenant namespace.

        Args:
            tenant_id: Target tenant, also the namespace
            services: Service names to deploy

        Returns:
            Result per service name

        Raises:
            NotFoundError: If a service name is not in the catalog
        """
        targets = self.catalog.select(services)
        params = [self._params(tenant_id, s) for s in targets]

        async with self.session_factory() as session:
            repo = DeploymentRecordRepository(session)
            for p in params:
                await repo.upsert(tenant_id, p.service_name, p.image, DeploymentStatus.PENDING)
            await session.commit()

        outcomes = await asyncio.gather(
            *(self.trigger.deploy(s, p) for s, p in zip(targets, params, strict=True)),
            return_exceptions=True,
        )

        results: dict[str, DeploymentResult] = {}
        for service, outcome in zip(targets, outcomes, strict=True):
            if isinstance(outcome, Exception):
                results[service.name] = DeploymentResult(
                    service_name=service.name,
                    status=DeploymentStatus.FAILED,
                    error=str(outcome) or type(outcome).__name__,
                )
                logger.warning(
                    "service_deploy_failed",
                    tenant_id=tenant_id,
                    service=service.name,
                    error=str(outcome),
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[service.name] = DeploymentResult(
                    service_name=service.name,
                    status=DeploymentStatus.DEPLOYED,
                    job_id=outcome,
                )

        async with self.session_factory() as session:
            repo = DeploymentRecordRepository(session)
            for p in params:
                result = results[p.service_name]
                await repo.upsert(
                    tenant_id,
                    p.service_name,
                    p.image,
                    result.status,
                    job_id=result.job_id,
                    error=result.error,
                )
            await session.commit()

        logger.info(
            "fanout_complete",
            tenant_id=tenant_id,
            deployed=[n for n, r in results.items() if r.ok],
            failed=[n for n, r in results.items() if not r.ok],
        )
        return results

    async def teardown(
        self,
        tenant_id: str,
        services: Iterable[str] | None = None,
    ) -> dict[str, TeardownResult]:
        """Run every selected service's teardown job for a tenant.

        Records of services torn down successfully are deleted.
        """
        targets = self.catalog.select(services)
        outcomes = await asyncio.gather(
            *(self.trigger.teardown(s, self._params(tenant_id, s)) for s in targets),
            return_exceptions=True,
        )

        results: dict[str, TeardownResult] = {}
        for service, outcome in zip(targets, outcomes, strict=True):
            if isinstance(outcome, Exception):
                results[service.name] = TeardownResult(
                    service_name=service.name,
                    removed=False,
                    error=str(outcome) or type(outcome).__name__,
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[service.name] = TeardownResult(
                    service_name=service.name,
                    removed=True,
                    job_id=outcome,
                )

        removed = [name for name, r in results.items() if r.removed]
        if removed:
            async with self.session_factory() as session:
                repo = DeploymentRecordRepository(session)
                await repo.delete_for_services(tenant_id, removed)
                await session.commit()

        logger.info("teardown_complete", tenant_id=tenant_id, removed=removed)
        return results

    async def records(self, tenant_id: str) -> list[ServiceDeploymentRecord]:
        async with self.session_factory() as session:
            return await DeploymentRecordRepository(session).list_for_tenant(tenant_id)

    async def forget(self, tenant_id: str) -> None:
        """Drop all deployment records of a deleted tenant."""
        async with self.session_factory() as session:
            await DeploymentRecordRepository(session).delete_for_services(
                tenant_id, self.catalog.names()
            )
            await session.commit()

    @staticmethod
    def _params(tenant_id: str, service: ServiceDefinition) -> DeployJobParams:
        return DeployJobParams(
            tenant_id=tenant_id,
            service_name=service.name,
            image=service.image,
        )
