"""Job registry and enqueueing utilities.

Provides a single place to enqueue lifecycle jobs from the API and the CLI
and to read back their status.
"""

import uuid
from typing import Any

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings
from arq.jobs import Job, JobStatus

from provisioner.config import settings


class ArqPoolHolder:
    """Holder for the ARQ connection pool.

    Uses a class attribute to manage module-level state without
    global statements.
    """

    pool: ArqRedis | None = None


def get_redis_settings() -> RedisSettings:
    """Get Redis settings for ARQ from the orchestrator configuration."""
    return RedisSettings.from_dsn(str(settings.redis_url))


async def init_arq_pool() -> ArqRedis:
    """Initialize the ARQ connection pool.

    Should be called during application startup.

    Returns:
        ARQ Redis pool
    """
    if ArqPoolHolder.pool is None:
        ArqPoolHolder.pool = await create_pool(get_redis_settings())
    return ArqPoolHolder.pool


async def get_arq_pool() -> ArqRedis:
    """Get the ARQ connection pool.

    Raises:
        RuntimeError: If pool not initialized
    """
    if ArqPoolHolder.pool is None:
        raise RuntimeError(
            "ARQ pool not initialized. Call init_arq_pool() during startup."
        )
    return ArqPoolHolder.pool


async def close_arq_pool() -> None:
    """Close the ARQ connection pool.

    Should be called during application shutdown.
    """
    if ArqPoolHolder.pool is not None:
        await ArqPoolHolder.pool.close()
        ArqPoolHolder.pool = None


class JobQueue:
    """Enqueue lifecycle jobs and read back their status.

    Thin wrapper over the ARQ pool handed to API routes.
    """

    def __init__(self, pool: ArqRedis) -> None:
        self.pool = pool

    async def enqueue(self, job_name: str, **kwargs: Any) -> str:
        """Enqueue a job under a fresh id and return the id."""
        job_id = f"{job_name}:{uuid.uuid4().hex}"
        job = await self.pool.enqueue_job(job_name, _job_id=job_id, **kwargs)
        if job is None:
            raise RuntimeError(f"Job {job_id} is already queued")
        return job.job_id

    async def status(self, job_id: str) -> tuple[JobStatus, Any]:
        """Look up a job's status and, once complete, its result.

        A job that raised reports its exception as the result.
        """
        job = Job(job_id, self.pool)
        status = await job.status()
        if status is not JobStatus.complete:
            return status, None
        info = await job.result_info()
        return status, info.result if info is not None else None
