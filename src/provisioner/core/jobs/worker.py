"""ARQ worker configuration.

Defines the worker settings including registered jobs and
startup/shutdown hooks.
"""

from typing import Any, ClassVar

import structlog

from provisioner.config import settings
from provisioner.core.database import create_engine, create_session_factory
from provisioner.core.jobs.registry import get_redis_settings
from provisioner.core.jobs.tasks import (
    deprovision_tenant,
    onboard_tenant,
    rollback_tenant,
    service_jobs,
)
from provisioner.core.jobs.tasks.deploy import build_overlay_trigger
from provisioner.core.logging import configure_logging
from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.fanout import ArqDeployTrigger
from provisioner.modules.lifecycle import build_from_settings


async def startup(ctx: dict[str, Any]) -> None:
    """Initialize resources for the worker.

    Called once when the worker starts. Sets up the registry database and
    the orchestrator shared by all jobs.

    Args:
        ctx: Worker context dict (shared across all jobs)
    """
    configure_logging()
    log = structlog.get_logger()
    log.info("worker_startup", environment=settings.environment)

    engine = create_engine()
    session_factory = create_session_factory(engine)

    # Fan-out goes back through the queue so each service's job runs on
    # whichever worker serves it
    trigger = ArqDeployTrigger(ctx["redis"], poll_delay=settings.deploy_poll_delay)

    ctx["db_engine"] = engine
    ctx["db_session_factory"] = session_factory
    ctx["orchestrator"] = build_from_settings(settings, session_factory, trigger)
    ctx["overlay_trigger"] = build_overlay_trigger(
        settings.manifests_dir, settings.api_host
    )

    log.info("worker_startup_complete")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Cleanup resources when the worker stops.

    Args:
        ctx: Worker context dict
    """
    log = structlog.get_logger()
    log.info("worker_shutdown")

    engine = ctx.get("db_engine")
    if engine:
        await engine.dispose()
        log.info("database_engine_disposed")

    log.info("worker_shutdown_complete")


class WorkerSettings:
    """ARQ worker settings.

    Run the worker with:
        arq provisioner.core.jobs.worker.WorkerSettings
    """

    functions: ClassVar[list[Any]] = [
        onboard_tenant,
        deprovision_tenant,
        rollback_tenant,
        *service_jobs(ServiceCatalog.load(settings.service_catalog_path)),
    ]

    # Worker lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    # Redis connection
    redis_settings = get_redis_settings()

    # Worker configuration
    max_jobs = 20  # Lifecycle jobs wait on deploy jobs in the same pool
    job_timeout = 1800  # Provisioning can be slow
    keep_result = 86400  # Results back the job status endpoint
    retry_jobs = False  # Stage failures are never retried automatically
    max_tries = 1
