"""Per-tenant execution identity provisioning."""

import structlog

from provisioner.core.constants import SERVICE_ACCOUNT_SUFFIX, TENANT_REGISTRY_TABLE
from provisioner.core.errors import ConflictError
from provisioner.modules.identity.backends import IdentityBackend
from provisioner.modules.identity.schemas import (
    IdentityRef,
    PermissionPolicy,
    PolicyStatement,
)


logger = structlog.get_logger()

READ_WRITE_ACTIONS = (
    "data:GetItem",
    "data:PutItem",
    "data:UpdateItem",
    "data:DeleteItem",
    "data:Query",
    "data:Scan",
    "data:BatchGetItem",
    "data:BatchWriteItem",
)
READ_ACTIONS = ("data:GetItem", "data:Query")


def identity_name(tenant_id: str) -> str:
    return f"{tenant_id}-{SERVICE_ACCOUNT_SUFFIX}"


def build_policy(tenant_id: str) -> PermissionPolicy:
    """Least-privilege policy for a tenant's namespace identity.

    Read/write on stores named ``<Kind>-<tenant_id>``, read-only on the
    shared tenant registry for status lookups.
    """
    return PermissionPolicy(
        statements=(
            PolicyStatement(
                actions=READ_WRITE_ACTIONS,
                resources=(f"*-{tenant_id}",),
            ),
            PolicyStatement(
                actions=READ_ACTIONS,
                resources=(TENANT_REGISTRY_TABLE,),
            ),
        )
    )


class ServiceAccountProvisioner:
    """Creates one namespace-scoped execution identity per tenant."""

    def __init__(self, backend: IdentityBackend) -> None:
        self.backend = backend

    async def provision_identity(self, tenant_id: str) -> IdentityRef:
        """Create the tenant's identity, or return the existing one.

        Safe to call again after a partial failure: an identity that already
        exists (including one created concurrently) is returned as is.
        """
        name = identity_name(tenant_id)
        existing = await self.backend.get(tenant_id, name)
        if existing is not None:
            logger.debug("identity_exists", tenant_id=tenant_id, name=name)
            return existing

        identity = IdentityRef(
            name=name,
            namespace=tenant_id,
            tenant_id=tenant_id,
            policy=build_policy(tenant_id),
        )
        try:
            created = await self.backend.create(identity)
        except ConflictError:
            existing = await self.backend.get(tenant_id, name)
            if existing is None:
                raise
            return existing

        logger.info("identity_provisioned", tenant_id=tenant_id, name=name)
        return created

    async def remove_identity(self, tenant_id: str) -> None:
        """Delete the tenant's identity; used when rolling back onboarding."""
        await self.backend.delete(tenant_id, identity_name(tenant_id))
        logger.info("identity_removed", tenant_id=tenant_id)
