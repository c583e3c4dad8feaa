"""Tenant-scoped data stores for silo-tier services."""

from provisioner.modules.resources.backends import (
    InMemoryResourceBackend,
    ManifestResourceBackend,
    ResourceBackend,
)
from provisioner.modules.resources.provisioner import (
    TenantResourceProvisioner,
    resource_name,
)


__all__ = [
    "InMemoryResourceBackend",
    "ManifestResourceBackend",
    "ResourceBackend",
    "TenantResourceProvisioner",
    "resource_name",
]
