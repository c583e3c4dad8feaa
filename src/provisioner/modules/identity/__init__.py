"""Namespace-scoped execution identities for tenants."""

from provisioner.modules.identity.backends import (
    IdentityBackend,
    InMemoryIdentityBackend,
    ManifestIdentityBackend,
)
from provisioner.modules.identity.schemas import (
    IdentityRef,
    PermissionPolicy,
    PolicyStatement,
)
from provisioner.modules.identity.service import (
    ServiceAccountProvisioner,
    build_policy,
    identity_name,
)


__all__ = [
    "IdentityBackend",
    "IdentityRef",
    "InMemoryIdentityBackend",
    "ManifestIdentityBackend",
    "PermissionPolicy",
    "PolicyStatement",
    "ServiceAccountProvisioner",
    "build_policy",
    "identity_name",
]
