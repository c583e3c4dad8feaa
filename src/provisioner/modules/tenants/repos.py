"""Registry repositories for tenant, deployment and resource records."""

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from provisioner.modules.tenants.models import (
    DeploymentStatus,
    ServiceDeploymentRecord,
    Tenant,
    TenantResource,
    TenantStatus,
)


class TenantRepository:
    """Repository for Tenant records.

    All writes stay inside the caller's transaction; committing is the
    caller's decision.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, tenant_id: str) -> Tenant | None:
        """Get a tenant by id.

        Args:
            tenant_id: The tenant's id

        Returns:
            Tenant if found, None otherwise
        """
        return await self.session.get(Tenant, tenant_id, populate_existing=True)

    async def insert_if_absent(self, tenant: Tenant) -> bool:
        """Insert a tenant unless one with the same id exists.

        Commits on success. On a primary-key collision the transaction is
        rolled back and nothing is written.

        Returns:
            True if this call created the record
        """
        self.session.add(tenant)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return False
        return True

    async def compare_and_set_status(
        self,
        tenant_id: str,
        expected: Iterable[TenantStatus],
        target: TenantStatus,
        **values: Any,
    ) -> bool:
        """Atomically move a tenant to ``target`` if its status is one of ``expected``.

        Returns:
            True if the row was updated
        """
        stmt = (
            update(Tenant)
            .where(
                Tenant.tenant_id == tenant_id,
                Tenant.status.in_(list(expected)),
            )
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

    async def list_tenants(self, status: TenantStatus | None = None) -> list[Tenant]:
        """List tenants, oldest first, optionally filtered by status."""
        stmt = select(Tenant).order_by(Tenant.created_at, Tenant.tenant_id)
        if status is not None:
            stmt = stmt.where(Tenant.status == status)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class DeploymentRecordRepository:
    """Repository for ServiceDeploymentRecord rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, tenant_id: str, service_name: str) -> ServiceDeploymentRecord | None:
        stmt = select(ServiceDeploymentRecord).where(
            ServiceDeploymentRecord.tenant_id == tenant_id,
            ServiceDeploymentRecord.service_name == service_name,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(
        self,
        tenant_id: str,
        service_name: str,
        image: str,
        status: DeploymentStatus,
        job_id: str | None = None,
        error: str | None = None,
    ) -> ServiceDeploymentRecord:
        """Create or update the record for one (tenant, service) pair."""
        record = await self.get(tenant_id, service_name)
        if record is None:
            record = ServiceDeploymentRecord(
                tenant_id=tenant_id,
                service_name=service_name,
            )
            self.session.add(record)
        record.image = image
        record.status = status
        record.job_id = job_id
        record.error = error
        await self.session.flush()
        return record

    async def list_for_tenant(self, tenant_id: str) -> list[ServiceDeploymentRecord]:
        stmt = (
            select(ServiceDeploymentRecord)
            .where(ServiceDeploymentRecord.tenant_id == tenant_id)
            .order_by(ServiceDeploymentRecord.service_name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_services(self, tenant_id: str, service_names: Sequence[str]) -> int:
        stmt = delete(ServiceDeploymentRecord).where(
            ServiceDeploymentRecord.tenant_id == tenant_id,
            ServiceDeploymentRecord.service_name.in_(list(service_names)),
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0


class TenantResourceRepository:
    """Repository for TenantResource rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, tenant_id: str, resource_name: str) -> TenantResource | None:
        stmt = select(TenantResource).where(
            TenantResource.tenant_id == tenant_id,
            TenantResource.resource_name == resource_name,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_if_absent(self, resource: TenantResource) -> TenantResource:
        existing = await self.get(resource.tenant_id, resource.resource_name)
        if existing is not None:
            return existing
        self.session.add(resource)
        await self.session.flush()
        return resource

    async def list_for_tenant(self, tenant_id: str) -> list[TenantResource]:
        stmt = (
            select(TenantResource)
            .where(TenantResource.tenant_id == tenant_id)
            .order_by(TenantResource.resource_name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def remove(self, resource: TenantResource) -> None:
        await self.session.delete(resource)
        await self.session.flush()
