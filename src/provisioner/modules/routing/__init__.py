"""Merge-pattern routing: per-tenant minion fragments under one master."""

from provisioner.modules.routing.generator import RoutingPatchGenerator
from provisioner.modules.routing.layers import (
    FileRoutingLayer,
    InMemoryRoutingLayer,
    RoutingLayer,
)
from provisioner.modules.routing.merge import compose_entry_point
from provisioner.modules.routing.schemas import (
    ComposedRoute,
    EntryPoint,
    FragmentRole,
    RoutePath,
    RoutingFragment,
    ServiceRouteRule,
)


__all__ = [
    "ComposedRoute",
    "EntryPoint",
    "FileRoutingLayer",
    "FragmentRole",
    "InMemoryRoutingLayer",
    "RoutePath",
    "RoutingFragment",
    "RoutingLayer",
    "RoutingPatchGenerator",
    "ServiceRouteRule",
    "compose_entry_point",
]
