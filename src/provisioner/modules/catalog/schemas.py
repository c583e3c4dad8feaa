"""Pydantic schemas for the downstream service catalog."""

import re
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from provisioner.core.constants import (
    DEFAULT_BACKEND_PORT,
    DEPLOY_JOB_SUFFIX,
    TEARDOWN_JOB_SUFFIX,
)


_URL_PREFIX = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class DataTier(StrEnum):
    """How a service stores tenant data."""

    POOLED = "pooled"
    SILO = "silo"


class ServiceDefinition(BaseModel):
    """A downstream service that exposes tenant deploy and teardown jobs."""

    name: str = Field(..., description="Service name (e.g., 'OrderService')")
    url_prefix: str = Field(..., description="Path segment after the tenant id")
    backend_service: str = Field(..., description="Kubernetes Service name")
    backend_port: int = Field(DEFAULT_BACKEND_PORT, gt=0, lt=65536)
    image: str = Field(..., description="Published image reference")
    data_tier: DataTier = Field(DataTier.POOLED)
    resource_kind: str | None = Field(
        None, description="Kind of the dedicated data store (e.g., 'Order')"
    )
    deploy_job: str = Field("", description="Tenant deploy job name")
    teardown_job: str = Field("", description="Tenant teardown job name")

    @field_validator("url_prefix")
    @classmethod
    def validate_url_prefix(cls, v: str) -> str:
        v = v.strip("/")
        if not _URL_PREFIX.match(v):
            raise ValueError(f"Invalid URL prefix: {v!r}")
        return v

    @model_validator(mode="after")
    def default_job_names(self) -> "ServiceDefinition":
        if not self.deploy_job:
            self.deploy_job = f"{self.name}{DEPLOY_JOB_SUFFIX}"
        if not self.teardown_job:
            self.teardown_job = f"{self.name}{TEARDOWN_JOB_SUFFIX}"
        if self.data_tier is DataTier.SILO and not self.resource_kind:
            raise ValueError(f"Silo service {self.name!r} must declare a resource_kind")
        return self

    def needs_dedicated_resource(self, plan: str) -> bool:
        """Whether a tenant on ``plan`` gets a dedicated store for this service."""
        if not self.resource_kind:
            return False
        return self.data_tier is DataTier.SILO or plan == DataTier.SILO.value


class CatalogSpec(BaseModel):
    """Contents of a catalog YAML file."""

    services: list[ServiceDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_names_and_prefixes(self) -> "CatalogSpec":
        names = [s.name for s in self.services]
        prefixes = [s.url_prefix for s in self.services]
        if len(set(names)) != len(names):
            raise ValueError("Service names must be unique")
        if len(set(prefixes)) != len(prefixes):
            raise ValueError("Service URL prefixes must be unique")
        return self
