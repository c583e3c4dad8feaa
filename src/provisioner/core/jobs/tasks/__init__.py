"""Background job tasks.

This package contains all background job implementations.
Each task module defines async functions registered in the worker.
"""

from provisioner.core.jobs.tasks.deploy import service_jobs
from provisioner.core.jobs.tasks.lifecycle import (
    deprovision_tenant,
    onboard_tenant,
    rollback_tenant,
)


__all__ = [
    "deprovision_tenant",
    "onboard_tenant",
    "rollback_tenant",
    "service_jobs",
]
