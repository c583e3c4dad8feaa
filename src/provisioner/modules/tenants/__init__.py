"""Tenants module - the tenant registry."""

from provisioner.modules.tenants.models import (
    DeploymentStatus,
    ServiceDeploymentRecord,
    Tenant,
    TenantPlan,
    TenantResource,
    TenantStatus,
    can_transition,
)
from provisioner.modules.tenants.registry import TenantRegistry
from provisioner.modules.tenants.schemas import TenantJobParams


__all__ = [
    "DeploymentStatus",
    "ServiceDeploymentRecord",
    "Tenant",
    "TenantJobParams",
    "TenantPlan",
    "TenantRegistry",
    "TenantResource",
    "TenantStatus",
    "can_transition",
]
