"""Provisioning of dedicated data stores for silo-tier services."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.resources.backends import ResourceBackend
from provisioner.modules.tenants.models import TenantResource
from provisioner.modules.tenants.repos import TenantResourceRepository


logger = structlog.get_logger()


def resource_name(kind: str, tenant_id: str) -> str:
    """Deterministic name of a tenant's data store, e.g. ``Order-acmecorp``."""
    return f"{kind}-{tenant_id}"


class TenantResourceProvisioner:
    """Creates and destroys the data stores owned by one tenant.

    Both directions are idempotent: existing stores are adopted on create and
    missing stores are ignored on delete, so a retried pipeline converges.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        backend: ResourceBackend,
        catalog: ServiceCatalog,
    ) -> None:
        self.session_factory = session_factory
        self.backend = backend
        self.catalog = catalog

    async def provision(self, tenant_id: str, plan: str) -> list[TenantResource]:
        """Create every dedicated store the tenant's plan calls for.

        Pooled services are skipped.

        Returns:
            Registry records of the tenant's stores
        """
        provisioned: list[TenantResource] = []
        for service in self.catalog.silo_services(plan):
            if service.resource_kind is None:
                continue
            name = resource_name(service.resource_kind, tenant_id)
            if not await self.backend.exists(name):
                await self.backend.create(name, service.resource_kind, tenant_id)
                logger.info("tenant_resource_created", tenant_id=tenant_id, resource=name)

            async with self.session_factory() as session:
                record = await TenantResourceRepository(session).add_if_absent(
                    TenantResource(
                        tenant_id=tenant_id,
                        service_name=service.name,
                        kind=service.resource_kind,
                        resource_name=name,
                    )
                )
                await session.commit()
            provisioned.append(record)
        return provisioned

    async def teardown(self, tenant_id: str, plan: str) -> list[str]:
        """Delete every store owned by the tenant.

        Covers both recorded stores and the ones the catalog would have
        created, so a store allocated just before a crash is not orphaned.

        Returns:
            Names of the stores that were removed
        """
        async with self.session_factory() as session:
            records = await TenantResourceRepository(session).list_for_tenant(tenant_id)

        names = {r.resource_name for r in records}
        for service in self.catalog.silo_services(plan):
            if service.resource_kind is not None:
                names.add(resource_name(service.resource_kind, tenant_id))

        removed: list[str] = []
        for name in sorted(names):
            if await self.backend.exists(name):
                await self.backend.delete(name)
                removed.append(name)
                logger.info("tenant_resource_deleted", tenant_id=tenant_id, resource=name)

            async with self.session_factory() as session:
                repo = TenantResourceRepository(session)
                record = await repo.get(tenant_id, name)
                if record is not None:
                    await repo.remove(record)
                await session.commit()
        return removed

    async def list_for_tenant(self, tenant_id: str) -> list[TenantResource]:
        async with self.session_factory() as session:
            return await TenantResourceRepository(session).list_for_tenant(tenant_id)
