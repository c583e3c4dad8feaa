"""Integration tests for the deployment fan-out."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from provisioner.core.errors import NotFoundError
from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.fanout import DeploymentFanout, InMemoryDeployTrigger
from provisioner.modules.tenants.models import DeploymentStatus


pytestmark = pytest.mark.integration


@pytest.fixture
def fanout(
    session_factory: async_sessionmaker[AsyncSession],
    deploy_trigger: InMemoryDeployTrigger,
    catalog: ServiceCatalog,
) -> DeploymentFanout:
    return DeploymentFanout(session_factory, deploy_trigger, catalog)


class TestDeploy:
    """Tests for DeploymentFanout.deploy."""

    async def test_every_service_receives_tenant_id(
        self, fanout: DeploymentFanout, deploy_trigger: InMemoryDeployTrigger
    ):
        results = await fanout.deploy("acmecorp")

        assert sorted(results) == ["OrderService", "ProductService"]
        assert all(r.ok for r in results.values())
        assert sorted(deploy_trigger.calls) == [
            ("deploy", "OrderService", "acmecorp"),
            ("deploy", "ProductService", "acmecorp"),
        ]

    async def test_one_failure_does_not_block_others(
        self, fanout: DeploymentFanout, deploy_trigger: InMemoryDeployTrigger
    ):
        deploy_trigger.fail_services.add("OrderService")

        results = await fanout.deploy("acmecorp")

        assert results["ProductService"].ok
        assert results["OrderService"].status is DeploymentStatus.FAILED
        assert "OrderServiceTenantDeploy failed" in results["OrderService"].error
        assert ("acmecorp", "ProductService") in deploy_trigger.deployed

    async def test_records_reflect_outcomes(
        self, fanout: DeploymentFanout, deploy_trigger: InMemoryDeployTrigger
    ):
        deploy_trigger.fail_services.add("OrderService")
        await fanout.deploy("acmecorp")

        records = {r.service_name: r for r in await fanout.records("acmecorp")}

        assert records["OrderService"].status is DeploymentStatus.FAILED
        assert records["ProductService"].status is DeploymentStatus.DEPLOYED
        assert records["ProductService"].job_id == "ProductServiceTenantDeploy-acmecorp"

    async def test_redeploying_one_service_is_idempotent(
        self, fanout: DeploymentFanout, deploy_trigger: InMemoryDeployTrigger
    ):
        await fanout.deploy("acmecorp", ["ProductService"])
        snapshot = dict(deploy_trigger.deployed)

        await fanout.deploy("acmecorp", ["ProductService"])

        assert deploy_trigger.deployed == snapshot
        assert len(await fanout.records("acmecorp")) == 1

    async def test_unknown_service(self, fanout: DeploymentFanout):
        with pytest.raises(NotFoundError):
            await fanout.deploy("acmecorp", ["BillingService"])


class TestTeardown:
    """Tests for DeploymentFanout.teardown and forget."""

    async def test_teardown_drops_removed_records(
        self, fanout: DeploymentFanout, deploy_trigger: InMemoryDeployTrigger
    ):
        await fanout.deploy("acmecorp")
        deploy_trigger.fail_teardown.add("OrderService")

        results = await fanout.teardown("acmecorp")

        assert results["ProductService"].removed
        assert not results["OrderService"].removed
        assert [r.service_name for r in await fanout.records("acmecorp")] == [
            "OrderService"
        ]

    async def test_forget(self, fanout: DeploymentFanout):
        await fanout.deploy("acmecorp")
        await fanout.deploy("globex")

        await fanout.forget("acmecorp")

        assert await fanout.records("acmecorp") == []
        assert len(await fanout.records("globex")) == 2
