"""Results of lifecycle pipeline invocations."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from provisioner.core.errors import AppException
from provisioner.modules.fanout import DeploymentResult
from provisioner.modules.tenants.models import TenantStatus
from provisioner.modules.tenants.schemas import TenantJobParams


ONBOARDING_STAGES = ("resources", "identity", "routing", "deployment")
DEPROVISIONING_STAGES = ("routing", "resources")


class StageStatus(StrEnum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"
    REVERTED = "reverted"


class StageOutcome(BaseModel):
    name: str
    status: StageStatus
    error: str | None = None


class LifecycleResult(BaseModel):
    """Terminal result of one pipeline invocation.

    ``error`` is the domain exception describing a failure; it is reported,
    not raised, so callers always see the stage breakdown. Use
    ``raise_for_status`` to turn it into an exception.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    tenant_id: str
    operation: str
    status: TenantStatus
    stages: list[StageOutcome] = Field(default_factory=list)
    error: AppException | None = Field(None, exclude=True)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def raise_for_status(self) -> None:
        if self.error is not None:
            raise self.error

    def summary(self) -> dict[str, Any]:
        """JSON-safe view used as the job result."""
        data = self.model_dump(mode="json")
        if self.error is not None:
            data["error"] = {
                "code": self.error.error_code,
                "message": self.error.message,
                "details": self.error.details,
            }
        else:
            data["error"] = None
        return data


class OnboardingResult(LifecycleResult):
    operation: str = "onboard"
    params: TenantJobParams
    resumed: bool = False
    deployments: dict[str, DeploymentResult] = Field(default_factory=dict)

    @property
    def deployed_services(self) -> list[str]:
        return sorted(n for n, r in self.deployments.items() if r.ok)

    @property
    def failed_services(self) -> list[str]:
        return sorted(n for n, r in self.deployments.items() if not r.ok)


class DeprovisioningResult(LifecycleResult):
    operation: str = "deprovision"
    removed_routes: list[str] = Field(default_factory=list)
    removed_resources: list[str] = Field(default_factory=list)
