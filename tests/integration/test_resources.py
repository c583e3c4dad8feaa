"""Integration tests for tenant data store provisioning."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.resources import (
    InMemoryResourceBackend,
    TenantResourceProvisioner,
)


pytestmark = pytest.mark.integration


@pytest.fixture
def provisioner(
    session_factory: async_sessionmaker[AsyncSession],
    resource_backend: InMemoryResourceBackend,
    catalog: ServiceCatalog,
) -> TenantResourceProvisioner:
    return TenantResourceProvisioner(session_factory, resource_backend, catalog)


class TestTenantResourceProvisioner:
    """Tests for TenantResourceProvisioner."""

    async def test_only_silo_services_get_stores(
        self,
        provisioner: TenantResourceProvisioner,
        resource_backend: InMemoryResourceBackend,
    ):
        records = await provisioner.provision("acmecorp", "pooled")

        assert [r.resource_name for r in records] == ["Order-acmecorp"]
        assert resource_backend.resources == {"Order-acmecorp": ("Order", "acmecorp")}

    async def test_silo_plan_skips_services_without_resource_kind(
        self,
        provisioner: TenantResourceProvisioner,
        resource_backend: InMemoryResourceBackend,
    ):
        records = await provisioner.provision("acmecorp", "silo")

        assert [r.resource_name for r in records] == ["Order-acmecorp"]
        assert await provisioner.teardown("acmecorp", "silo") == ["Order-acmecorp"]
        assert resource_backend.resources == {}

    async def test_existing_store_is_adopted(
        self,
        provisioner: TenantResourceProvisioner,
        resource_backend: InMemoryResourceBackend,
    ):
        resource_backend.resources["Order-acmecorp"] = ("Order", "acmecorp")
        resource_backend.fail_create.add("Order-acmecorp")

        await provisioner.provision("acmecorp", "silo")
        await provisioner.provision("acmecorp", "silo")

        assert len(await provisioner.list_for_tenant("acmecorp")) == 1

    async def test_teardown_removes_stores_and_records(
        self,
        provisioner: TenantResourceProvisioner,
        resource_backend: InMemoryResourceBackend,
    ):
        await provisioner.provision("acmecorp", "silo")
        await provisioner.provision("globex", "silo")

        removed = await provisioner.teardown("acmecorp", "silo")

        assert removed == ["Order-acmecorp"]
        assert await provisioner.list_for_tenant("acmecorp") == []
        assert "Order-globex" in resource_backend.resources

    async def test_teardown_finds_unrecorded_store(
        self,
        provisioner: TenantResourceProvisioner,
        resource_backend: InMemoryResourceBackend,
    ):
        # Store created by the provider before the record was written
        resource_backend.resources["Order-acmecorp"] = ("Order", "acmecorp")

        assert await provisioner.teardown("acmecorp", "pooled") == ["Order-acmecorp"]
        assert resource_backend.resources == {}

    async def test_teardown_twice_is_noop(self, provisioner: TenantResourceProvisioner):
        await provisioner.provision("acmecorp", "silo")
        await provisioner.teardown("acmecorp", "silo")

        assert await provisioner.teardown("acmecorp", "silo") == []
