"""Background job processing with ARQ.

Lifecycle triggers (onboarding, deprovisioning, rollback) and the
per-service tenant deploy jobs run as ARQ jobs.
"""

from provisioner.core.jobs.registry import (
    JobQueue,
    close_arq_pool,
    get_arq_pool,
    init_arq_pool,
)


__all__ = [
    "JobQueue",
    "close_arq_pool",
    "get_arq_pool",
    "init_arq_pool",
]
