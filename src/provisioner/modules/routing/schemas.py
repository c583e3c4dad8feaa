"""Routing fragments for the master/minion merge pattern.

Each fragment is a self-contained Kubernetes Ingress document. The master
owns the shared host and carries no paths; every minion adds the paths of
one (tenant, service) pair and is merged into the master by the ingress
controller.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from provisioner.core.constants import (
    INGRESS_CLASS_ANNOTATION,
    MERGEABLE_INGRESS_ANNOTATION,
)


MASTER_NAMESPACE = "default"
TENANT_LABEL = "saas/tenant"
SERVICE_LABEL = "saas/service"


class FragmentRole(StrEnum):
    MASTER = "master"
    MINION = "minion"


class ServiceRouteRule(BaseModel):
    """Route exposing one service under one tenant's path prefix."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    service_name: str
    host: str
    path_prefix: str
    backend_service: str
    backend_port: int

    @property
    def fragment_name(self) -> str:
        """Name of the minion carrying this rule, e.g. ``acmecorp-products-ingress``."""
        return f"{self.path_prefix.strip('/').replace('/', '-')}-ingress"


class RoutePath(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    backend_service: str
    backend_port: int


class RoutingFragment(BaseModel):
    """Independently addressable routing document."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: FragmentRole
    host: str
    ingress_class: str = "nginx"
    namespace: str = MASTER_NAMESPACE
    tenant_id: str | None = None
    service_name: str | None = None
    paths: tuple[RoutePath, ...] = Field(default_factory=tuple)

    def to_manifest(self) -> dict[str, Any]:
        """Render as a ``networking.k8s.io/v1`` Ingress."""
        labels: dict[str, str] = {}
        if self.tenant_id:
            labels[TENANT_LABEL] = self.tenant_id
        if self.service_name:
            labels[SERVICE_LABEL] = self.service_name

        rule: dict[str, Any] = {"host": self.host}
        if self.paths:
            rule["http"] = {
                "paths": [
                    {
                        "path": p.path,
                        "pathType": "Prefix",
                        "backend": {
                            "service": {
                                "name": p.backend_service,
                                "port": {"number": p.backend_port},
                            }
                        },
                    }
                    for p in self.paths
                ]
            }

        return {
            "apiVersion": "networking.k8s.io/v1",
            "kind": "Ingress",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": labels,
                "annotations": {
                    INGRESS_CLASS_ANNOTATION: self.ingress_class,
                    MERGEABLE_INGRESS_ANNOTATION: self.role.value,
                },
            },
            "spec": {"rules": [rule]},
        }

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> "RoutingFragment":
        metadata = manifest.get("metadata", {})
        annotations = metadata.get("annotations", {})
        labels = metadata.get("labels", {})
        rules = manifest.get("spec", {}).get("rules", [])
        host = rules[0]["host"] if rules else ""

        paths = []
        for rule in rules:
            for p in rule.get("http", {}).get("paths", []):
                service = p["backend"]["service"]
                paths.append(
                    RoutePath(
                        path=p["path"],
                        backend_service=service["name"],
                        backend_port=service["port"]["number"],
                    )
                )

        return cls(
            name=metadata["name"],
            role=FragmentRole(annotations[MERGEABLE_INGRESS_ANNOTATION]),
            host=host,
            ingress_class=annotations.get(INGRESS_CLASS_ANNOTATION, "nginx"),
            namespace=metadata.get("namespace", MASTER_NAMESPACE),
            tenant_id=labels.get(TENANT_LABEL),
            service_name=labels.get(SERVICE_LABEL),
            paths=tuple(paths),
        )


class ComposedRoute(BaseModel):
    """One effective route of the composed entry point."""

    model_config = ConfigDict(frozen=True)

    host: str
    path: str
    backend_service: str
    backend_port: int
    fragment: str
    tenant_id: str | None = None


class EntryPoint(BaseModel):
    """Result of merging the master with its minions."""

    masters: tuple[str, ...]
    routes: tuple[ComposedRoute, ...]
    unmerged: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Minions whose host has no master",
    )
