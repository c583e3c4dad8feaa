"""Reference runner for the per-service tenant deploy jobs.

Each catalog service gets a ``<Service>TenantDeploy`` and a
``<Service>TenantTeardown`` job taking ``TENANT_ID``. The jobs render the
service's overlay for the tenant and apply it with kubectl. Services that
run their own deploy runners simply do not start this worker.
"""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import structlog
from arq.worker import Function, func

from provisioner.modules.catalog import ServiceCatalog, ServiceDefinition
from provisioner.modules.fanout import (
    DeployJobParams,
    KubectlApplier,
    OverlayDeployTrigger,
)


log = structlog.get_logger()

JobCoroutine = Callable[..., Awaitable[str]]


def _trigger(ctx: dict[str, Any]) -> OverlayDeployTrigger:
    return ctx["overlay_trigger"]


def make_deploy_job(service: ServiceDefinition) -> JobCoroutine:
    async def deploy(ctx: dict[str, Any], TENANT_ID: str, **kwargs: Any) -> str:  # noqa: N803
        params = DeployJobParams(
            tenant_id=TENANT_ID, service_name=service.name, image=service.image
        )
        return await _trigger(ctx).deploy(service, params)

    return deploy


def make_teardown_job(service: ServiceDefinition) -> JobCoroutine:
    async def teardown(ctx: dict[str, Any], TENANT_ID: str, **kwargs: Any) -> str:  # noqa: N803
        params = DeployJobParams(
            tenant_id=TENANT_ID, service_name=service.name, image=service.image
        )
        return await _trigger(ctx).teardown(service, params)

    return teardown


def service_jobs(catalog: ServiceCatalog) -> list[Function]:
    """ARQ functions for every catalog service's deploy and teardown jobs."""
    jobs = []
    for service in catalog.services():
        jobs.append(func(make_deploy_job(service), name=service.deploy_job))
        jobs.append(func(make_teardown_job(service), name=service.teardown_job))
    return jobs


def build_overlay_trigger(manifests_dir: Path, api_host: str) -> OverlayDeployTrigger:
    return OverlayDeployTrigger(
        manifests_dir / "overlays",
        api_host,
        applier=KubectlApplier(),
    )
