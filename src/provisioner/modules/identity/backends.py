"""Identity federation backends."""

from typing import Protocol

import structlog

from provisioner.core.errors import ConflictError
from provisioner.core.manifests import ManifestStore
from provisioner.modules.identity.schemas import IdentityRef, PermissionPolicy


logger = structlog.get_logger()


class IdentityBackend(Protocol):
    """Narrow interface to the identity provider."""

    async def get(self, namespace: str, name: str) -> IdentityRef | None: ...

    async def create(self, identity: IdentityRef) -> IdentityRef:
        """Create an identity; raises ConflictError if it already exists."""
        ...

    async def delete(self, namespace: str, name: str) -> None: ...


class InMemoryIdentityBackend:
    """Process-local identity backend with fault injection for tests."""

    def __init__(self) -> None:
        self.identities: dict[tuple[str, str], IdentityRef] = {}
        self.fail_for: set[str] = set()
        self.create_calls = 0

    async def get(self, namespace: str, name: str) -> IdentityRef | None:
        return self.identities.get((namespace, name))

    async def create(self, identity: IdentityRef) -> IdentityRef:
        self.create_calls += 1
        if identity.tenant_id in self.fail_for:
            raise RuntimeError(f"identity federation failed for {identity.tenant_id}")
        key = (identity.namespace, identity.name)
        if key in self.identities:
            raise ConflictError(f"Identity '{identity.name}' already exists")
        self.identities[key] = identity
        return identity

    async def delete(self, namespace: str, name: str) -> None:
        self.identities.pop((namespace, name), None)


class ManifestIdentityBackend:
    """Writes ServiceAccount manifests annotated with their policy.

    One document per tenant namespace; the cluster-side controller binds the
    role described by the policy annotation.
    """

    def __init__(self, store: ManifestStore) -> None:
        self.store = store

    async def get(self, namespace: str, name: str) -> IdentityRef | None:
        document = await self.store.get(namespace)
        if document is None:
            return None
        metadata = document.get("metadata", {})
        if metadata.get("name") != name:
            return None
        return IdentityRef(
            name=name,
            namespace=namespace,
            tenant_id=metadata.get("labels", {}).get("saas/tenant", namespace),
            policy=PermissionPolicy.model_validate(document.get("policy", {})),
        )

    async def create(self, identity: IdentityRef) -> IdentityRef:
        if await self.get(identity.namespace, identity.name) is not None:
            raise ConflictError(f"Identity '{identity.name}' already exists")
        await self.store.put(
            identity.namespace,
            {
                "apiVersion": "v1",
                "kind": "ServiceAccount",
                "metadata": {
                    "name": identity.name,
                    "namespace": identity.namespace,
                    "labels": {"saas/tenant": identity.tenant_id},
                },
                "policy": identity.policy.model_dump(mode="json"),
            },
        )
        logger.info(
            "service_account_written",
            tenant_id=identity.tenant_id,
            name=identity.name,
        )
        return identity

    async def delete(self, namespace: str, name: str) -> None:
        if await self.get(namespace, name) is not None:
            await self.store.delete(namespace)
