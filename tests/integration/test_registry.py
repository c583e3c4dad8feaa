"""Integration tests for the tenant registry."""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from provisioner.core.errors import (
    InvalidStateError,
    NotFoundError,
    ResourceConflictError,
)
from provisioner.modules.tenants import TenantJobParams, TenantRegistry
from provisioner.modules.tenants.models import TenantStatus


pytestmark = pytest.mark.integration


@pytest.fixture
def registry(session_factory: async_sessionmaker[AsyncSession]) -> TenantRegistry:
    return TenantRegistry(session_factory)


def acme(plan: str = "pooled") -> TenantJobParams:
    return TenantJobParams.from_signup("Acme Corp", "admin@acme.example.com", plan)


class TestRegister:
    """Tests for TenantRegistry.register."""

    async def test_new_tenant_starts_provisioning(self, registry: TenantRegistry):
        tenant, resumed = await registry.register(acme())

        assert tenant.tenant_id == "acmecorp"
        assert tenant.status is TenantStatus.PROVISIONING
        assert tenant.completed_stages == []
        assert tenant.created_at is not None
        assert resumed is False

    async def test_second_register_conflicts(self, registry: TenantRegistry):
        await registry.register(acme())

        with pytest.raises(ResourceConflictError) as exc_info:
            await registry.register(acme(plan="silo"))

        assert exc_info.value.details["status"] == "Provisioning"
        tenant = await registry.require("acmecorp")
        assert tenant.plan == "pooled"

    async def test_concurrent_registers_admit_exactly_one(
        self, registry: TenantRegistry
    ):
        outcomes = await asyncio.gather(
            *(registry.register(acme()) for _ in range(5)),
            return_exceptions=True,
        )

        admitted = [o for o in outcomes if not isinstance(o, Exception)]
        rejected = [o for o in outcomes if isinstance(o, ResourceConflictError)]
        assert len(admitted) == 1
        assert len(rejected) == 4

    async def test_failed_tenant_is_resumed(self, registry: TenantRegistry):
        await registry.register(acme())
        await registry.mark_stage_applied("acmecorp", "resources")
        await registry.transition(
            "acmecorp", TenantStatus.FAILED, failed_stage="identity", last_error="boom"
        )

        tenant, resumed = await registry.register(acme())

        assert resumed is True
        assert tenant.status is TenantStatus.PROVISIONING
        assert tenant.completed_stages == ["resources"]
        assert tenant.failed_stage is None
        assert tenant.last_error is None


class TestTransition:
    """Tests for TenantRegistry.transition."""

    async def test_allowed_transition(self, registry: TenantRegistry):
        await registry.register(acme())

        tenant = await registry.transition("acmecorp", TenantStatus.ACTIVE)

        assert tenant.status is TenantStatus.ACTIVE

    async def test_no_way_back_to_provisioning(self, registry: TenantRegistry):
        await registry.register(acme())
        await registry.transition("acmecorp", TenantStatus.ACTIVE)

        with pytest.raises(InvalidStateError):
            await registry.transition("acmecorp", TenantStatus.PROVISIONING)

        assert (await registry.require("acmecorp")).status is TenantStatus.ACTIVE

    async def test_unexpected_source_is_rejected(self, registry: TenantRegistry):
        await registry.register(acme())

        with pytest.raises(InvalidStateError):
            await registry.transition(
                "acmecorp",
                TenantStatus.DEPROVISIONING,
                expected=[TenantStatus.ACTIVE],
            )

    async def test_unknown_tenant(self, registry: TenantRegistry):
        with pytest.raises(NotFoundError):
            await registry.transition("ghost", TenantStatus.ACTIVE)


class TestStageBookkeeping:
    """Tests for completed stage tracking."""

    async def test_mark_applied_is_idempotent(self, registry: TenantRegistry):
        await registry.register(acme())

        await registry.mark_stage_applied("acmecorp", "resources")
        await registry.mark_stage_applied("acmecorp", "resources")
        await registry.mark_stage_applied("acmecorp", "identity")

        tenant = await registry.require("acmecorp")
        assert tenant.completed_stages == ["resources", "identity"]

    async def test_mark_reverted(self, registry: TenantRegistry):
        await registry.register(acme())
        await registry.mark_stage_applied("acmecorp", "resources")

        await registry.mark_stage_reverted("acmecorp", "resources")

        assert (await registry.require("acmecorp")).completed_stages == []

    async def test_list_filters_by_status(self, registry: TenantRegistry):
        await registry.register(acme())
        await registry.register(
            TenantJobParams.from_signup("Globex", "ops@globex.example.com", "silo")
        )
        await registry.transition("globex", TenantStatus.ACTIVE)

        active = await registry.list_tenants(TenantStatus.ACTIVE)

        assert [t.tenant_id for t in active] == ["globex"]
        assert len(await registry.list_tenants()) == 2
