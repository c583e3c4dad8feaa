"""Route generation and per-tenant fragment publication."""

from collections.abc import Iterable

import structlog

from provisioner.core.constants import MASTER_FRAGMENT_NAME
from provisioner.modules.catalog import ServiceDefinition
from provisioner.modules.routing.layers import RoutingLayer
from provisioner.modules.routing.merge import compose_entry_point
from provisioner.modules.routing.schemas import (
    EntryPoint,
    FragmentRole,
    RoutePath,
    RoutingFragment,
    ServiceRouteRule,
)


logger = structlog.get_logger()


class RoutingPatchGenerator:
    """Exposes tenants on the shared API host through minion fragments.

    The master fragment is created once and never edited afterwards; every
    mutation adds or removes the fragment of one (tenant, service) pair, so
    pipelines for different tenants never write the same document.
    """

    def __init__(self, layer: RoutingLayer, host: str, ingress_class: str = "nginx") -> None:
        self.layer = layer
        self.host = host
        self.ingress_class = ingress_class

    def generate_routes(
        self,
        tenant_id: str,
        services: Iterable[ServiceDefinition],
    ) -> frozenset[ServiceRouteRule]:
        """Build the route rules for a tenant; pure and deterministic."""
        return frozenset(
            ServiceRouteRule(
                tenant_id=tenant_id,
                service_name=service.name,
                host=self.host,
                path_prefix=f"/{tenant_id}/{service.url_prefix}",
                backend_service=service.backend_service,
                backend_port=service.backend_port,
            )
            for service in services
            if service.url_prefix
        )

    def fragment_for(self, rule: ServiceRouteRule) -> RoutingFragment:
        return RoutingFragment(
            name=rule.fragment_name,
            role=FragmentRole.MINION,
            host=rule.host,
            ingress_class=self.ingress_class,
            namespace=rule.tenant_id,
            tenant_id=rule.tenant_id,
            service_name=rule.service_name,
            paths=(
                RoutePath(
                    path=rule.path_prefix,
                    backend_service=rule.backend_service,
                    backend_port=rule.backend_port,
                ),
            ),
        )

    async def ensure_entry_point(self) -> RoutingFragment:
        """Create the master fragment for the shared host if it is missing."""
        existing = await self.layer.get(MASTER_FRAGMENT_NAME)
        if existing is not None:
            return existing
        master = RoutingFragment(
            name=MASTER_FRAGMENT_NAME,
            role=FragmentRole.MASTER,
            host=self.host,
            ingress_class=self.ingress_class,
        )
        await self.layer.apply(master)
        logger.info("routing_entry_point_created", host=self.host)
        return master

    async def publish_routes(self, rules: Iterable[ServiceRouteRule]) -> list[str]:
        """Apply one minion per rule.

        Re-publishing the same rules leaves routing state unchanged.

        Returns:
            Names of the fragments whose content changed
        """
        changed = []
        for rule in sorted(rules, key=lambda r: r.fragment_name):
            if await self.layer.apply(self.fragment_for(rule)):
                changed.append(rule.fragment_name)
        if changed:
            logger.info("routes_published", fragments=changed)
        return changed

    async def remove_routes(
        self,
        tenant_id: str,
        services: Iterable[ServiceDefinition],
    ) -> list[str]:
        """Delete the tenant's fragments for ``services``.

        Only fragment names derived from ``tenant_id`` are touched; missing
        fragments are skipped.

        Returns:
            Names of the fragments that were removed
        """
        removed = []
        rules = self.generate_routes(tenant_id, services)
        for rule in sorted(rules, key=lambda r: r.fragment_name):
            if await self.layer.delete(rule.fragment_name):
                removed.append(rule.fragment_name)
        if removed:
            logger.info("routes_removed", tenant_id=tenant_id, fragments=removed)
        return removed

    async def routes_for_tenant(self, tenant_id: str) -> list[RoutingFragment]:
        return [f for f in await self.layer.fragments() if f.tenant_id == tenant_id]

    async def entry_point(self) -> EntryPoint:
        """Compose the effective routing table from every stored fragment."""
        return compose_entry_point(await self.layer.fragments())
