"""Shared API dependencies."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from provisioner.config import settings
from provisioner.core.database import get_db, get_session_factory
from provisioner.core.errors import ServiceUnavailableError
from provisioner.core.jobs import JobQueue, get_arq_pool
from provisioner.modules.lifecycle import Orchestrator, build_from_settings


# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


@lru_cache
def get_orchestrator() -> Orchestrator:
    """Orchestrator used for registry reads and pre-enqueue checks."""
    return build_from_settings(settings, get_session_factory())


async def get_job_queue() -> JobQueue:
    try:
        pool = await get_arq_pool()
    except RuntimeError as e:
        raise ServiceUnavailableError("Job queue is not available") from e
    return JobQueue(pool)


OrchestratorDep = Annotated[Orchestrator, Depends(get_orchestrator)]
JobQueueDep = Annotated[JobQueue, Depends(get_job_queue)]
