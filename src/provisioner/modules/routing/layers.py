"""Routing layers that store fragments for the ingress controller."""

from typing import Protocol

from provisioner.core.manifests import ManifestStore
from provisioner.modules.routing.schemas import RoutingFragment


class RoutingLayer(Protocol):
    """Per-fragment storage; fragments are never edited in place by others."""

    async def apply(self, fragment: RoutingFragment) -> bool:
        """Create or replace a fragment; returns True if routing state changed."""
        ...

    async def delete(self, name: str) -> bool:
        """Delete a fragment; returns False if it did not exist."""
        ...

    async def get(self, name: str) -> RoutingFragment | None: ...

    async def fragments(self) -> list[RoutingFragment]: ...


class InMemoryRoutingLayer:
    """Process-local routing layer with fault injection for tests.

    ``fail_apply`` and ``fail_delete`` hold tenant ids whose fragment
    operations raise.
    """

    def __init__(self) -> None:
        self.documents: dict[str, RoutingFragment] = {}
        self.fail_apply: set[str] = set()
        self.fail_delete: set[str] = set()
        self.writes = 0

    async def apply(self, fragment: RoutingFragment) -> bool:
        if fragment.tenant_id in self.fail_apply:
            raise RuntimeError(f"routing layer rejected {fragment.name}")
        if self.documents.get(fragment.name) == fragment:
            return False
        self.documents[fragment.name] = fragment
        self.writes += 1
        return True

    async def delete(self, name: str) -> bool:
        fragment = self.documents.get(name)
        if fragment is None:
            return False
        if fragment.tenant_id in self.fail_delete:
            raise RuntimeError(f"routing layer refused to delete {name}")
        del self.documents[name]
        return True

    async def get(self, name: str) -> RoutingFragment | None:
        return self.documents.get(name)

    async def fragments(self) -> list[RoutingFragment]:
        return [self.documents[name] for name in sorted(self.documents)]


class FileRoutingLayer:
    """One Ingress YAML file per fragment, picked up by a GitOps sync."""

    def __init__(self, store: ManifestStore) -> None:
        self.store = store

    async def apply(self, fragment: RoutingFragment) -> bool:
        return await self.store.put(fragment.name, fragment.to_manifest())

    async def delete(self, name: str) -> bool:
        return await self.store.delete(name)

    async def get(self, name: str) -> RoutingFragment | None:
        manifest = await self.store.get(name)
        if manifest is None:
            return None
        return RoutingFragment.from_manifest(manifest)

    async def fragments(self) -> list[RoutingFragment]:
        documents = await self.store.list()
        return [RoutingFragment.from_manifest(doc) for doc in documents.values()]
