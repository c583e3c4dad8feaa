"""Deploy triggers: how the fan-out reaches a service's tenant deploy job."""

import asyncio
import uuid
from pathlib import Path
from typing import Protocol

import structlog
from arq import ArqRedis

from provisioner.modules.catalog import ServiceDefinition
from provisioner.modules.fanout.overlay import (
    KubectlApplier,
    remove_overlay,
    render_overlay,
    write_overlay,
)
from provisioner.modules.fanout.schemas import DeployJobParams


logger = structlog.get_logger()


class DeployTrigger(Protocol):
    """Uniform deploy/teardown capability of a downstream service.

    Both calls return once the job reached a terminal state and raise if it
    failed.
    """

    async def deploy(self, service: ServiceDefinition, params: DeployJobParams) -> str:
        """Run the service's tenant deploy job; returns the job id."""
        ...

    async def teardown(self, service: ServiceDefinition, params: DeployJobParams) -> str:
        """Run the service's tenant teardown job; returns the job id."""
        ...


class InMemoryDeployTrigger:
    """Records deployed namespaces; used by tests and local dry runs."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.deployed: dict[tuple[str, str], str] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.fail_services: set[str] = set()
        self.fail_teardown: set[str] = set()

    async def deploy(self, service: ServiceDefinition, params: DeployJobParams) -> str:
        self.calls.append(("deploy", service.name, params.tenant_id))
        if self.delay:
            await asyncio.sleep(self.delay)
        if service.name in self.fail_services:
            raise RuntimeError(f"{service.deploy_job} failed for {params.tenant_id}")
        self.deployed[(params.tenant_id, service.name)] = params.image
        return f"{service.deploy_job}-{params.tenant_id}"

    async def teardown(self, service: ServiceDefinition, params: DeployJobParams) -> str:
        self.calls.append(("teardown", service.name, params.tenant_id))
        if service.name in self.fail_teardown:
            raise RuntimeError(f"{service.teardown_job} failed for {params.tenant_id}")
        self.deployed.pop((params.tenant_id, service.name), None)
        return f"{service.teardown_job}-{params.tenant_id}"


class OverlayDeployTrigger:
    """Renders each tenant overlay in-process and optionally applies it.

    Without an applier the overlays are only written, which is what the
    CLI uses.
    """

    def __init__(
        self,
        directory: Path,
        api_host: str,
        applier: KubectlApplier | None = None,
    ) -> None:
        self.directory = directory
        self.api_host = api_host
        self.applier = applier

    def overlay_dir(self, service: ServiceDefinition, tenant_id: str) -> Path:
        return self.directory / tenant_id / service.url_prefix

    async def deploy(self, service: ServiceDefinition, params: DeployJobParams) -> str:
        directory = self.overlay_dir(service, params.tenant_id)
        files = render_overlay(service, params.tenant_id, self.api_host)
        await asyncio.to_thread(write_overlay, directory, files)
        if self.applier is not None:
            await self.applier.apply(directory, params.tenant_id)
        logger.info(
            "overlay_deployed",
            service=service.name,
            tenant_id=params.tenant_id,
            applied=self.applier is not None,
        )
        return str(directory)

    async def teardown(self, service: ServiceDefinition, params: DeployJobParams) -> str:
        directory = self.overlay_dir(service, params.tenant_id)
        if self.applier is not None and directory.exists():
            await self.applier.delete(directory, params.tenant_id)
        await asyncio.to_thread(remove_overlay, directory)
        return str(directory)


class ArqDeployTrigger:
    """Enqueues the service's job on the ARQ queue and awaits its result."""

    def __init__(self, pool: ArqRedis, poll_delay: float = 0.5) -> None:
        self.pool = pool
        self.poll_delay = poll_delay

    async def deploy(self, service: ServiceDefinition, params: DeployJobParams) -> str:
        return await self._run(service.deploy_job, params)

    async def teardown(self, service: ServiceDefinition, params: DeployJobParams) -> str:
        return await self._run(service.teardown_job, params)

    async def _run(self, job_name: str, params: DeployJobParams) -> str:
        job_id = f"{job_name}:{params.tenant_id}:{uuid.uuid4().hex[:8]}"
        job = await self.pool.enqueue_job(job_name, _job_id=job_id, **params.to_trigger())
        if job is None:
            raise RuntimeError(f"Job {job_id} was not enqueued")
        logger.info(
            "deploy_job_enqueued",
            job=job_name,
            job_id=job_id,
            tenant_id=params.tenant_id,
        )
        # Re-raises the job's own exception if it failed
        await job.result(poll_delay=self.poll_delay)
        return job_id
