"""Typed parameters and results of per-service tenant deploy jobs."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from provisioner.core.constants import MAX_TENANT_ID_LENGTH
from provisioner.modules.tenants.models import DeploymentStatus


class DeployJobParams(BaseModel):
    """Parameters passed to a service's tenant deploy or teardown job.

    ``TENANT_ID`` is the only per-tenant parameter; the service name and
    image are fixed by the catalog.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tenant_id: str = Field(
        ..., alias="TENANT_ID", min_length=1, max_length=MAX_TENANT_ID_LENGTH
    )
    service_name: str = Field(..., alias="SERVICE_NAME")
    image: str = Field(..., alias="IMAGE")

    def to_trigger(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class DeploymentResult(BaseModel):
    """Outcome of one service's deploy in one tenant namespace."""

    service_name: str
    status: DeploymentStatus
    job_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is DeploymentStatus.DEPLOYED


class TeardownResult(BaseModel):
    """Outcome of one service's teardown in one tenant namespace."""

    service_name: str
    removed: bool
    job_id: str | None = None
    error: str | None = None
