"""Tests for the tenantctl CLI."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

from provisioner.core.database import Base, create_session_factory
from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.fanout import InMemoryDeployTrigger
from provisioner.modules.identity import InMemoryIdentityBackend
from provisioner.modules.lifecycle import Orchestrator, build_orchestrator
from provisioner.modules.resources import InMemoryResourceBackend
from provisioner.modules.routing import InMemoryRoutingLayer
from tenantctl.cli import app


pytestmark = pytest.mark.integration

runner = CliRunner()

API_HOST = "api.example.com"


class Collaborators:
    """In-memory collaborators shared by every CLI invocation of one test."""

    def __init__(self) -> None:
        self.resources = InMemoryResourceBackend()
        self.identities = InMemoryIdentityBackend()
        self.routing = InMemoryRoutingLayer()
        self.trigger = InMemoryDeployTrigger()


@pytest.fixture
def collaborators(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Collaborators:
    """Point the CLI at a temporary registry and in-memory collaborators.

    Each command runs its own event loop, so the engine is created per
    invocation against the same database file.
    """
    shared = Collaborators()
    database = tmp_path / "registry.db"
    catalog = ServiceCatalog.load()

    @asynccontextmanager
    async def open_test_orchestrator() -> AsyncIterator[Orchestrator]:
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{database}", poolclass=NullPool
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        try:
            yield build_orchestrator(
                session_factory=create_session_factory(engine),
                catalog=catalog,
                resource_backend=shared.resources,
                identity_backend=shared.identities,
                routing_layer=shared.routing,
                trigger=shared.trigger,
                api_host=API_HOST,
            )
        finally:
            await engine.dispose()

    monkeypatch.setattr("tenantctl.utils.open_orchestrator", open_test_orchestrator)
    return shared


def onboard_acme():
    return runner.invoke(
        app, ["onboard", "Acme Corp", "--email", "admin@acme.example.com", "-p", "silo"]
    )


class TestOnboardCommand:
    """Tests for tenantctl onboard."""

    def test_onboard_succeeds(self, collaborators: Collaborators):
        result = onboard_acme()

        assert result.exit_code == 0, result.output
        assert "acmecorp" in result.output
        assert "Order-acmecorp" in collaborators.resources.resources

    def test_duplicate_exits_non_zero(self, collaborators: Collaborators):
        onboard_acme()

        result = onboard_acme()

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_failed_stage_exits_non_zero(self, collaborators: Collaborators):
        collaborators.routing.fail_apply.add("acmecorp")

        result = onboard_acme()

        assert result.exit_code == 1

    def test_partial_deployment_exits_zero(self, collaborators: Collaborators):
        collaborators.trigger.fail_services.add("OrderService")

        result = onboard_acme()

        assert result.exit_code == 0
        assert "deployment failed for: OrderService" in result.output


class TestListCommand:
    """Tests for tenantctl list."""

    def test_empty_registry(self, collaborators: Collaborators):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "No tenants found." in result.output

    def test_active_tenants_exit_zero(self, collaborators: Collaborators):
        onboard_acme()

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "acmecorp" in result.output

    def test_failed_tenant_exits_non_zero(self, collaborators: Collaborators):
        collaborators.routing.fail_apply.add("acmecorp")
        onboard_acme()

        assert runner.invoke(app, ["list"]).exit_code == 1
        assert runner.invoke(app, ["list", "--status", "active"]).exit_code == 0

    def test_unknown_status(self, collaborators: Collaborators):
        result = runner.invoke(app, ["list", "--status", "bogus"])

        assert result.exit_code == 2


class TestDeprovisionCommand:
    """Tests for tenantctl deprovision and rollback."""

    def test_deprovision(self, collaborators: Collaborators):
        onboard_acme()

        result = runner.invoke(app, ["deprovision", "acmecorp", "--yes"])

        assert result.exit_code == 0, result.output
        assert collaborators.resources.resources == {}

        again = runner.invoke(app, ["deprovision", "acmecorp", "--yes"])
        assert again.exit_code == 1
        assert "already deleted" in again.output

    def test_declined_confirmation(self, collaborators: Collaborators):
        onboard_acme()

        result = runner.invoke(app, ["deprovision", "acmecorp"], input="n\n")

        assert result.exit_code == 0
        assert "Order-acmecorp" in collaborators.resources.resources

    def test_unknown_tenant(self, collaborators: Collaborators):
        result = runner.invoke(app, ["deprovision", "ghost", "-y"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_rollback(self, collaborators: Collaborators):
        collaborators.routing.fail_apply.add("acmecorp")
        onboard_acme()
        collaborators.routing.fail_apply.clear()

        result = runner.invoke(app, ["rollback", "acmecorp"])

        assert result.exit_code == 0, result.output
        assert collaborators.identities.identities == {}


class TestInspectionCommands:
    """Tests for show, routes, deploy and services."""

    def test_show(self, collaborators: Collaborators):
        onboard_acme()

        result = runner.invoke(app, ["show", "acmecorp"])

        assert result.exit_code == 0
        assert "Order-acmecorp" in result.output

    def test_routes(self, collaborators: Collaborators):
        onboard_acme()

        result = runner.invoke(app, ["routes", "--tenant", "acmecorp"])

        assert result.exit_code == 0
        assert "/acmecorp/orders" in result.output

    def test_redeploy_failed_service(self, collaborators: Collaborators):
        collaborators.trigger.fail_services.add("OrderService")
        onboard_acme()
        collaborators.trigger.fail_services.clear()

        result = runner.invoke(app, ["deploy", "acmecorp", "-s", "OrderService"])

        assert result.exit_code == 0, result.output
        assert ("acmecorp", "OrderService") in collaborators.trigger.deployed

    def test_services(self):
        result = runner.invoke(app, ["services"])

        assert result.exit_code == 0
        assert "OrderService" in result.output
