"""Wiring of the lifecycle pipelines to their collaborators."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from provisioner.config import Settings
from provisioner.core.manifests import ManifestStore
from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.fanout import (
    DeploymentFanout,
    DeployTrigger,
    OverlayDeployTrigger,
)
from provisioner.modules.identity import (
    IdentityBackend,
    ManifestIdentityBackend,
    ServiceAccountProvisioner,
)
from provisioner.modules.lifecycle.deprovisioning import (
    DeprovisioningPipeline,
    RollbackPipeline,
)
from provisioner.modules.lifecycle.onboarding import OnboardingPipeline
from provisioner.modules.resources import (
    ManifestResourceBackend,
    ResourceBackend,
    TenantResourceProvisioner,
)
from provisioner.modules.routing import (
    FileRoutingLayer,
    RoutingLayer,
    RoutingPatchGenerator,
)
from provisioner.modules.tenants import TenantRegistry


@dataclass
class Orchestrator:
    """Everything a lifecycle job, API request or CLI command needs."""

    registry: TenantRegistry
    catalog: ServiceCatalog
    resources: TenantResourceProvisioner
    identities: ServiceAccountProvisioner
    routing: RoutingPatchGenerator
    fanout: DeploymentFanout
    onboarding: OnboardingPipeline
    deprovisioning: DeprovisioningPipeline
    rollbacks: RollbackPipeline


def build_orchestrator(
    session_factory: async_sessionmaker[AsyncSession],
    catalog: ServiceCatalog,
    resource_backend: ResourceBackend,
    identity_backend: IdentityBackend,
    routing_layer: RoutingLayer,
    trigger: DeployTrigger,
    api_host: str,
    ingress_class: str = "nginx",
) -> Orchestrator:
    registry = TenantRegistry(session_factory)
    resources = TenantResourceProvisioner(session_factory, resource_backend, catalog)
    identities = ServiceAccountProvisioner(identity_backend)
    routing = RoutingPatchGenerator(routing_layer, api_host, ingress_class)
    fanout = DeploymentFanout(session_factory, trigger, catalog)
    return Orchestrator(
        registry=registry,
        catalog=catalog,
        resources=resources,
        identities=identities,
        routing=routing,
        fanout=fanout,
        onboarding=OnboardingPipeline(
            registry, catalog, resources, identities, routing, fanout
        ),
        deprovisioning=DeprovisioningPipeline(
            registry, catalog, resources, routing, fanout
        ),
        rollbacks=RollbackPipeline(
            registry, catalog, resources, identities, routing, fanout
        ),
    )


def build_from_settings(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    trigger: DeployTrigger | None = None,
) -> Orchestrator:
    """Build an orchestrator backed by the manifests directory.

    Routing fragments, identities and data store claims are written as YAML
    under ``settings.manifests_dir``. Without an explicit trigger, service
    overlays are rendered there too instead of being sent to a job queue.
    """
    root = settings.manifests_dir
    return build_orchestrator(
        session_factory=session_factory,
        catalog=ServiceCatalog.load(settings.service_catalog_path),
        resource_backend=ManifestResourceBackend(ManifestStore(root / "resources")),
        identity_backend=ManifestIdentityBackend(ManifestStore(root / "identities")),
        routing_layer=FileRoutingLayer(ManifestStore(root / "routing")),
        trigger=trigger or OverlayDeployTrigger(root / "overlays", settings.api_host),
        api_host=settings.api_host,
        ingress_class=settings.ingress_class,
    )
