"""Fan-out of tenant deploy jobs to downstream services."""

from provisioner.modules.fanout.overlay import (
    KubectlApplier,
    render_overlay,
    split_image,
    write_overlay,
)
from provisioner.modules.fanout.schemas import (
    DeployJobParams,
    DeploymentResult,
    TeardownResult,
)
from provisioner.modules.fanout.service import DeploymentFanout
from provisioner.modules.fanout.triggers import (
    ArqDeployTrigger,
    DeployTrigger,
    InMemoryDeployTrigger,
    OverlayDeployTrigger,
)


__all__ = [
    "ArqDeployTrigger",
    "DeployJobParams",
    "DeployTrigger",
    "DeploymentFanout",
    "DeploymentResult",
    "InMemoryDeployTrigger",
    "KubectlApplier",
    "OverlayDeployTrigger",
    "TeardownResult",
    "render_overlay",
    "split_image",
    "write_overlay",
]
