"""Tenant registry: the single source of truth for tenant existence and state."""

from collections.abc import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from provisioner.core.errors import InvalidStateError, NotFoundError, ResourceConflictError
from provisioner.modules.tenants.models import (
    TENANT_TRANSITIONS,
    Tenant,
    TenantStatus,
)
from provisioner.modules.tenants.repos import TenantRepository
from provisioner.modules.tenants.schemas import TenantJobParams


logger = structlog.get_logger()


class TenantRegistry:
    """Lifecycle-level operations on tenant records.

    Every method runs in its own short transaction so that status changes
    are visible to concurrent pipelines as soon as they return.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def register(self, params: TenantJobParams) -> tuple[Tenant, bool]:
        """Claim a tenant id for onboarding.

        Inserts a Provisioning record, or re-enters Provisioning from Failed
        so that a retry can resume. Either way at most one onboarding per
        tenant id is in flight.

        Args:
            params: Validated onboarding parameters

        Returns:
            Tuple of (tenant record, whether this is a resumed onboarding)

        Raises:
            ResourceConflictError: If the tenant exists and is not Failed
        """
        async with self.session_factory() as session:
            repo = TenantRepository(session)
            tenant = Tenant(
                tenant_id=params.tenant_id,
                company_name=params.company_name,
                admin_email=str(params.admin_email),
                plan=params.plan,
                status=TenantStatus.PROVISIONING,
                completed_stages=[],
                last_operation="onboard",
            )
            if await repo.insert_if_absent(tenant):
                logger.info("tenant_registered", tenant_id=params.tenant_id)
                return await self._load(session, params.tenant_id), False

            # A retry's signup details replace the failed attempt's.
            claimed = await repo.compare_and_set_status(
                params.tenant_id,
                expected=[TenantStatus.FAILED],
                target=TenantStatus.PROVISIONING,
                company_name=params.company_name,
                admin_email=str(params.admin_email),
                plan=params.plan,
                failed_stage=None,
                last_error=None,
                last_operation="onboard",
            )
            if not claimed:
                await session.rollback()
                existing = await repo.get(params.tenant_id)
                raise ResourceConflictError(
                    f"Tenant '{params.tenant_id}' already exists",
                    details={
                        "tenant_id": params.tenant_id,
                        "status": str(existing.status) if existing else None,
                    },
                )
            await session.commit()
            existing = await self._load(session, params.tenant_id)
            logger.info(
                "tenant_onboarding_resumed",
                tenant_id=params.tenant_id,
                completed_stages=existing.completed_stages,
            )
            return existing, True

    async def get(self, tenant_id: str) -> Tenant | None:
        async with self.session_factory() as session:
            return await TenantRepository(session).get(tenant_id)

    async def require(self, tenant_id: str) -> Tenant:
        """Get a tenant or raise NotFoundError."""
        tenant = await self.get(tenant_id)
        if tenant is None:
            raise NotFoundError(
                f"Tenant '{tenant_id}' not found",
                resource="tenant",
                resource_id=tenant_id,
            )
        return tenant

    async def list_tenants(self, status: TenantStatus | None = None) -> list[Tenant]:
        async with self.session_factory() as session:
            return await TenantRepository(session).list_tenants(status)

    async def transition(
        self,
        tenant_id: str,
        target: TenantStatus,
        expected: Iterable[TenantStatus] | None = None,
        **values: object,
    ) -> Tenant:
        """Move a tenant to ``target`` with a compare-and-set update.

        Args:
            tenant_id: The tenant's id
            target: Status to move to
            expected: Statuses the caller expects the tenant to be in;
                defaults to every status that may legally reach ``target``
            **values: Extra columns to write in the same statement

        Returns:
            The refreshed tenant record

        Raises:
            NotFoundError: If the tenant does not exist
            InvalidStateError: If the tenant is in a status that cannot
                reach ``target``
        """
        sources = {s for s, targets in TENANT_TRANSITIONS.items() if target in targets}
        if expected is not None:
            sources &= set(expected)

        async with self.session_factory() as session:
            repo = TenantRepository(session)
            updated = await repo.compare_and_set_status(tenant_id, sources, target, **values)
            if not updated:
                await session.rollback()
                current = await repo.get(tenant_id)
                if current is None:
                    raise NotFoundError(
                        f"Tenant '{tenant_id}' not found",
                        resource="tenant",
                        resource_id=tenant_id,
                    )
                raise InvalidStateError(
                    f"Tenant '{tenant_id}' is {current.status}, cannot move to {target}",
                    details={
                        "tenant_id": tenant_id,
                        "status": str(current.status),
                        "target": str(target),
                    },
                )
            await session.commit()
            tenant = await self._load(session, tenant_id)

        logger.info("tenant_status_changed", tenant_id=tenant_id, status=str(target))
        return tenant

    async def mark_stage_applied(self, tenant_id: str, stage: str) -> None:
        """Record that a stage's forward action is in place."""
        async with self.session_factory() as session:
            tenant = await self._load(session, tenant_id)
            if stage not in tenant.completed_stages:
                tenant.completed_stages = [*tenant.completed_stages, stage]
            await session.commit()

    async def mark_stage_reverted(self, tenant_id: str, stage: str) -> None:
        """Record that a stage's compensation has run."""
        async with self.session_factory() as session:
            tenant = await self._load(session, tenant_id)
            tenant.completed_stages = [s for s in tenant.completed_stages if s != stage]
            await session.commit()

    async def _load(self, session: AsyncSession, tenant_id: str) -> Tenant:
        tenant = await TenantRepository(session).get(tenant_id)
        if tenant is None:
            raise NotFoundError(
                f"Tenant '{tenant_id}' not found",
                resource="tenant",
                resource_id=tenant_id,
            )
        return tenant
