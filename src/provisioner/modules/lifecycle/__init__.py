"""Tenant lifecycle pipelines: onboarding, deprovisioning and rollback."""

from provisioner.modules.lifecycle.deprovisioning import (
    DeprovisioningPipeline,
    RollbackPipeline,
)
from provisioner.modules.lifecycle.onboarding import OnboardingPipeline
from provisioner.modules.lifecycle.orchestrator import (
    Orchestrator,
    build_from_settings,
    build_orchestrator,
)
from provisioner.modules.lifecycle.schemas import (
    DEPROVISIONING_STAGES,
    ONBOARDING_STAGES,
    DeprovisioningResult,
    LifecycleResult,
    OnboardingResult,
    StageOutcome,
    StageStatus,
)


__all__ = [
    "DEPROVISIONING_STAGES",
    "ONBOARDING_STAGES",
    "DeprovisioningPipeline",
    "DeprovisioningResult",
    "LifecycleResult",
    "OnboardingPipeline",
    "OnboardingResult",
    "Orchestrator",
    "RollbackPipeline",
    "StageOutcome",
    "StageStatus",
    "build_from_settings",
    "build_orchestrator",
]
