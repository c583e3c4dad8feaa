"""Declarative registry of downstream services targeted by the fan-out."""

from collections.abc import Iterable
from pathlib import Path

import yaml

from provisioner.core.errors import NotFoundError, ValidationError
from provisioner.modules.catalog.schemas import CatalogSpec, ServiceDefinition


BUNDLED_CATALOG = Path(__file__).parent / "services.yaml"


class ServiceCatalog:
    """Registry of downstream services.

    Adding a service is a catalog entry; the lifecycle pipelines iterate
    over whatever the catalog lists.
    """

    def __init__(self, services: Iterable[ServiceDefinition]) -> None:
        spec = CatalogSpec(services=list(services))
        self._services: dict[str, ServiceDefinition] = {s.name: s for s in spec.services}

    @classmethod
    def from_file(cls, path: Path) -> "ServiceCatalog":
        """Load a catalog from a YAML file.

        Args:
            path: Path to the catalog file.

        Returns:
            The loaded catalog.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValidationError: If the catalog specification is invalid.
        """
        if not path.exists():
            raise FileNotFoundError(f"Service catalog '{path}' not found")

        with path.open() as f:
            data = yaml.safe_load(f) or {}

        try:
            spec = CatalogSpec(**data)
        except Exception as e:
            raise ValidationError(f"Invalid service catalog: {e}") from e

        return cls(spec.services)

    @classmethod
    def load(cls, path: Path | None = None) -> "ServiceCatalog":
        """Load the configured catalog, falling back to the bundled one."""
        return cls.from_file(path or BUNDLED_CATALOG)

    def services(self) -> list[ServiceDefinition]:
        return list(self._services.values())

    def names(self) -> list[str]:
        return list(self._services)

    def get(self, name: str) -> ServiceDefinition:
        """Get a service definition by name.

        Raises:
            NotFoundError: If the service is not in the catalog.
        """
        try:
            return self._services[name]
        except KeyError:
            raise NotFoundError(
                f"Service '{name}' not found",
                resource="service",
                resource_id=name,
            ) from None

    def select(self, names: Iterable[str] | None = None) -> list[ServiceDefinition]:
        """Resolve a list of service names; ``None`` selects every service."""
        if names is None:
            return self.services()
        return [self.get(name) for name in names]

    def silo_services(self, plan: str) -> list[ServiceDefinition]:
        """Services that get a dedicated data store for a tenant on ``plan``."""
        return [s for s in self._services.values() if s.needs_dedicated_resource(plan)]
