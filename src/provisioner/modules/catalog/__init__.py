"""Downstream service catalog."""

from provisioner.modules.catalog.registry import BUNDLED_CATALOG, ServiceCatalog
from provisioner.modules.catalog.schemas import CatalogSpec, DataTier, ServiceDefinition


__all__ = [
    "BUNDLED_CATALOG",
    "CatalogSpec",
    "DataTier",
    "ServiceCatalog",
    "ServiceDefinition",
]
