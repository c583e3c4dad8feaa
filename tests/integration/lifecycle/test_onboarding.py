"""Integration tests for the onboarding pipeline."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from provisioner.core.errors import (
    PartialDeploymentError,
    ProvisioningFailure,
    ResourceConflictError,
    ValidationError,
)
from provisioner.modules.fanout import InMemoryDeployTrigger
from provisioner.modules.identity import InMemoryIdentityBackend
from provisioner.modules.lifecycle import Orchestrator, StageStatus
from provisioner.modules.resources import InMemoryResourceBackend
from provisioner.modules.routing import InMemoryRoutingLayer
from provisioner.modules.tenants.models import DeploymentStatus, TenantPlan, TenantStatus


pytestmark = pytest.mark.integration


async def onboard_acme(orchestrator: Orchestrator, plan: str = "silo"):
    return await orchestrator.onboarding.onboard(
        "Acme Corp", "admin@acme.example.com", plan
    )


class TestOnboarding:
    """End-to-end onboarding against in-memory collaborators."""

    async def test_new_tenant_becomes_active(
        self,
        orchestrator: Orchestrator,
        resource_backend: InMemoryResourceBackend,
        identity_backend: InMemoryIdentityBackend,
        routing_layer: InMemoryRoutingLayer,
        deploy_trigger: InMemoryDeployTrigger,
    ):
        result = await onboard_acme(orchestrator)

        assert result.succeeded
        assert result.status is TenantStatus.ACTIVE
        assert [s.status for s in result.stages] == [StageStatus.APPLIED] * 4

        tenant = await orchestrator.registry.require("acmecorp")
        assert tenant.status is TenantStatus.ACTIVE
        assert tenant.completed_stages == [
            "resources",
            "identity",
            "routing",
            "deployment",
        ]

        routes = await orchestrator.routing.routes_for_tenant("acmecorp")
        assert sorted(p.path for f in routes for p in f.paths) == [
            "/acmecorp/orders",
            "/acmecorp/products",
        ]
        assert "default-primary-mergeable-ingress" in routing_layer.documents
        assert "Order-acmecorp" in resource_backend.resources
        assert ("acmecorp", "acmecorp-service-account") in identity_backend.identities
        assert sorted(deploy_trigger.calls) == [
            ("deploy", "OrderService", "acmecorp"),
            ("deploy", "ProductService", "acmecorp"),
        ]

    async def test_entry_point_lists_tenant_routes(self, orchestrator: Orchestrator):
        await onboard_acme(orchestrator)

        entry = await orchestrator.routing.entry_point()

        assert entry.unmerged == ()
        assert {(r.path, r.backend_service) for r in entry.routes} == {
            ("/acmecorp/products", "product-service"),
            ("/acmecorp/orders", "order-service"),
        }

    async def test_duplicate_company_is_rejected_without_side_effects(
        self,
        orchestrator: Orchestrator,
        routing_layer: InMemoryRoutingLayer,
        deploy_trigger: InMemoryDeployTrigger,
    ):
        await onboard_acme(orchestrator)
        documents = dict(routing_layer.documents)
        calls = list(deploy_trigger.calls)

        with pytest.raises(ResourceConflictError):
            await orchestrator.onboarding.onboard(
                "ACME corp!", "other@acme.example.com", "pooled"
            )

        tenant = await orchestrator.registry.require("acmecorp")
        assert tenant.admin_email == "admin@acme.example.com"
        assert tenant.status is TenantStatus.ACTIVE
        assert routing_layer.documents == documents
        assert deploy_trigger.calls == calls

    async def test_invalid_input_writes_nothing(self, orchestrator: Orchestrator):
        with pytest.raises(ValidationError):
            await orchestrator.onboarding.onboard("Acme Corp", "not-an-email", "silo")

        assert await orchestrator.registry.list_tenants() == []

    async def test_regenerating_routes_is_a_noop(
        self, orchestrator: Orchestrator, routing_layer: InMemoryRoutingLayer
    ):
        await onboard_acme(orchestrator)
        writes = routing_layer.writes

        rules = orchestrator.routing.generate_routes(
            "acmecorp", orchestrator.catalog.services()
        )

        assert await orchestrator.routing.publish_routes(rules) == []
        assert routing_layer.writes == writes

    async def test_concurrent_tenants_get_distinct_prefixes(
        self,
        orchestrator: Orchestrator,
        routing_layer: InMemoryRoutingLayer,
    ):
        companies = ["Acme Corp", "Globex", "Initech", "Umbrella", "Hooli"]

        results = await asyncio.gather(
            *(
                orchestrator.onboarding.onboard(
                    name, f"admin{i}@example.com", "pooled"
                )
                for i, name in enumerate(companies)
            )
        )

        assert all(r.status is TenantStatus.ACTIVE for r in results)
        entry = await orchestrator.routing.entry_point()
        paths = [r.path for r in entry.routes]
        assert len(paths) == len(set(paths)) == 2 * len(companies)
        for result in results:
            tenant_paths = {p for p in paths if p.startswith(f"/{result.tenant_id}/")}
            assert len(tenant_paths) == 2


class TestOnboardingFailures:
    """Stage failures, resumption and partial deployment."""

    async def test_routing_fault_fails_and_retry_resumes(
        self,
        orchestrator: Orchestrator,
        resource_backend: InMemoryResourceBackend,
        identity_backend: InMemoryIdentityBackend,
        routing_layer: InMemoryRoutingLayer,
        deploy_trigger: InMemoryDeployTrigger,
    ):
        routing_layer.fail_apply.add("acmecorp")

        failed = await onboard_acme(orchestrator)

        assert failed.status is TenantStatus.FAILED
        assert isinstance(failed.error, ProvisioningFailure)
        assert failed.error.stage == "routing"
        assert failed.error.message.startswith("stage 3/4 (routing) failed")
        tenant = await orchestrator.registry.require("acmecorp")
        assert tenant.status is TenantStatus.FAILED
        assert tenant.failed_stage == "routing"
        assert tenant.completed_stages == ["resources", "identity"]
        assert "Order-acmecorp" in resource_backend.resources
        assert deploy_trigger.calls == []
        with pytest.raises(ProvisioningFailure):
            failed.raise_for_status()

        routing_layer.fail_apply.clear()
        retried = await onboard_acme(orchestrator)

        assert retried.resumed
        assert retried.status is TenantStatus.ACTIVE
        assert [(s.name, s.status) for s in retried.stages] == [
            ("resources", StageStatus.SKIPPED),
            ("identity", StageStatus.SKIPPED),
            ("routing", StageStatus.APPLIED),
            ("deployment", StageStatus.APPLIED),
        ]
        assert identity_backend.create_calls == 1

    async def test_retry_records_new_signup_details(
        self,
        orchestrator: Orchestrator,
        resource_backend: InMemoryResourceBackend,
        routing_layer: InMemoryRoutingLayer,
    ):
        routing_layer.fail_apply.add("acmecorp")
        failed = await orchestrator.onboarding.onboard(
            "Acme Corp", "old@acme.example.com", "silo"
        )
        assert failed.status is TenantStatus.FAILED

        routing_layer.fail_apply.clear()
        retried = await orchestrator.onboarding.onboard(
            "ACME corp", "new@acme.example.com", "pooled"
        )

        assert retried.resumed
        assert retried.status is TenantStatus.ACTIVE
        tenant = await orchestrator.registry.require("acmecorp")
        assert tenant.company_name == "ACME corp"
        assert tenant.admin_email == "new@acme.example.com"
        assert tenant.plan is TenantPlan.POOLED

        deprovisioned = await orchestrator.deprovisioning.deprovision("acmecorp")

        assert deprovisioned.status is TenantStatus.DELETED
        assert resource_backend.resources == {}

    async def test_bookkeeping_failure_ends_failed(
        self,
        orchestrator: Orchestrator,
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setattr(
            orchestrator.onboarding.registry,
            "mark_stage_applied",
            AsyncMock(side_effect=RuntimeError("database is locked")),
        )

        result = await onboard_acme(orchestrator)

        assert result.status is TenantStatus.FAILED
        assert result.error.message == "stage 1/4 (resources) failed: database is locked"
        tenant = await orchestrator.registry.require("acmecorp")
        assert tenant.status is TenantStatus.FAILED
        assert tenant.failed_stage == "resources"

    async def test_resource_fault_leaves_nothing_downstream(
        self,
        orchestrator: Orchestrator,
        resource_backend: InMemoryResourceBackend,
        routing_layer: InMemoryRoutingLayer,
    ):
        resource_backend.fail_create.add("Order-acmecorp")

        result = await onboard_acme(orchestrator)

        assert result.status is TenantStatus.FAILED
        assert result.error.details["stage_index"] == 1
        assert result.error.details["applied_stages"] == []
        assert await orchestrator.routing.routes_for_tenant("acmecorp") == []

    async def test_partial_deployment_stays_active(
        self,
        orchestrator: Orchestrator,
        deploy_trigger: InMemoryDeployTrigger,
    ):
        deploy_trigger.fail_services.add("OrderService")

        result = await onboard_acme(orchestrator)

        assert result.status is TenantStatus.ACTIVE
        assert isinstance(result.error, PartialDeploymentError)
        assert result.failed_services == ["OrderService"]
        assert result.deployed_services == ["ProductService"]
        tenant = await orchestrator.registry.require("acmecorp")
        assert tenant.status is TenantStatus.ACTIVE
        assert "OrderService" in tenant.last_error

        deploy_trigger.fail_services.clear()
        redeployed = await orchestrator.fanout.deploy("acmecorp", ["OrderService"])

        assert redeployed["OrderService"].ok
        records = await orchestrator.fanout.records("acmecorp")
        assert {r.status for r in records} == {DeploymentStatus.DEPLOYED}

    async def test_all_deployments_failing_still_active(
        self,
        orchestrator: Orchestrator,
        deploy_trigger: InMemoryDeployTrigger,
    ):
        deploy_trigger.fail_services.update({"OrderService", "ProductService"})

        result = await onboard_acme(orchestrator)

        assert result.status is TenantStatus.ACTIVE
        assert isinstance(result.error, PartialDeploymentError)
        assert result.error.failed_services == ["OrderService", "ProductService"]

    async def test_cancelled_before_start(
        self,
        orchestrator: Orchestrator,
        resource_backend: InMemoryResourceBackend,
    ):
        cancel = asyncio.Event()
        cancel.set()

        result = await orchestrator.onboarding.onboard(
            "Acme Corp", "admin@acme.example.com", "silo", cancel=cancel
        )

        assert result.status is TenantStatus.FAILED
        assert result.error.message == "stage 1/4 (resources) failed: cancelled"
        assert resource_backend.resources == {}

    async def test_cancel_during_stage_stops_at_next_boundary(
        self,
        orchestrator: Orchestrator,
        resource_backend: InMemoryResourceBackend,
        identity_backend: InMemoryIdentityBackend,
    ):
        cancel = asyncio.Event()
        create = resource_backend.create

        async def create_then_cancel(name: str, kind: str, tenant_id: str) -> None:
            cancel.set()
            await asyncio.sleep(0)
            await create(name, kind, tenant_id)

        resource_backend.create = create_then_cancel

        result = await orchestrator.onboarding.onboard(
            "Acme Corp", "admin@acme.example.com", "silo", cancel=cancel
        )

        assert result.status is TenantStatus.FAILED
        assert result.error.message == "stage 2/4 (identity) failed: cancelled"
        assert [(s.name, s.status) for s in result.stages] == [
            ("resources", StageStatus.APPLIED),
            ("identity", StageStatus.FAILED),
        ]
        assert "Order-acmecorp" in resource_backend.resources
        assert identity_backend.create_calls == 0
        tenant = await orchestrator.registry.require("acmecorp")
        assert tenant.completed_stages == ["resources"]
        assert tenant.failed_stage == "identity"
