"""Tests for the reference per-service deploy jobs."""

from pathlib import Path

from provisioner.core.jobs.tasks.deploy import (
    make_deploy_job,
    make_teardown_job,
    service_jobs,
)
from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.fanout import OverlayDeployTrigger


class TestServiceJobs:
    """Tests for service_jobs."""

    def test_two_jobs_per_service(self, catalog: ServiceCatalog):
        names = sorted(job.name for job in service_jobs(catalog))

        assert names == [
            "OrderServiceTenantDeploy",
            "OrderServiceTenantTeardown",
            "ProductServiceTenantDeploy",
            "ProductServiceTenantTeardown",
        ]

    async def test_jobs_render_and_remove_overlay(
        self, tmp_path: Path, catalog: ServiceCatalog
    ):
        ctx = {"overlay_trigger": OverlayDeployTrigger(tmp_path, "api.example.com")}
        service = catalog.get("ProductService")

        await make_deploy_job(service)(ctx, TENANT_ID="acmecorp")
        assert (tmp_path / "acmecorp" / "products" / "kustomization.yaml").exists()

        await make_teardown_job(service)(ctx, TENANT_ID="acmecorp")
        assert not (tmp_path / "acmecorp" / "products").exists()
