"""Backends that allocate tenant-scoped data stores."""

from typing import Protocol

import structlog

from provisioner.core.manifests import ManifestStore


logger = structlog.get_logger()


class ResourceBackend(Protocol):
    """Narrow interface to the provider that owns dedicated data stores."""

    async def exists(self, name: str) -> bool: ...

    async def create(self, name: str, kind: str, tenant_id: str) -> None: ...

    async def delete(self, name: str) -> None: ...


class InMemoryResourceBackend:
    """Process-local resource backend with fault injection for tests."""

    def __init__(self) -> None:
        self.resources: dict[str, tuple[str, str]] = {}
        self.fail_create: set[str] = set()
        self.fail_delete: set[str] = set()

    async def exists(self, name: str) -> bool:
        return name in self.resources

    async def create(self, name: str, kind: str, tenant_id: str) -> None:
        if name in self.fail_create:
            raise RuntimeError(f"provider refused to create {name}")
        self.resources[name] = (kind, tenant_id)

    async def delete(self, name: str) -> None:
        if name in self.fail_delete:
            raise RuntimeError(f"provider refused to delete {name}")
        self.resources.pop(name, None)


class ManifestResourceBackend:
    """Declares data stores as claim manifests for an external controller."""

    def __init__(self, store: ManifestStore) -> None:
        self.store = store

    async def exists(self, name: str) -> bool:
        return await self.store.get(name.lower()) is not None

    async def create(self, name: str, kind: str, tenant_id: str) -> None:
        await self.store.put(
            name.lower(),
            {
                "apiVersion": "provisioner.saas/v1",
                "kind": "DataStoreClaim",
                "metadata": {
                    "name": name.lower(),
                    "labels": {"saas/tenant": tenant_id, "saas/kind": kind},
                },
                "spec": {"resourceName": name, "kind": kind},
            },
        )
        logger.info("resource_claim_written", resource=name, tenant_id=tenant_id)

    async def delete(self, name: str) -> None:
        await self.store.delete(name.lower())
