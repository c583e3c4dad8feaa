"""Composition of routing fragments into the effective entry point."""

from collections.abc import Iterable

from provisioner.core.errors import ConflictError
from provisioner.modules.routing.schemas import (
    ComposedRoute,
    EntryPoint,
    FragmentRole,
    RoutingFragment,
)


def compose_entry_point(fragments: Iterable[RoutingFragment]) -> EntryPoint:
    """Merge minions into the master that owns their host.

    Minions without a master for their host are reported as unmerged and
    contribute no routes.

    Raises:
        ConflictError: If two fragments claim the same host and path
    """
    fragments = list(fragments)
    master_hosts = {f.host: f.name for f in fragments if f.role is FragmentRole.MASTER}

    claimed: dict[tuple[str, str], ComposedRoute] = {}
    unmerged: list[str] = []
    for fragment in sorted(fragments, key=lambda f: f.name):
        if fragment.role is FragmentRole.MASTER:
            continue
        if fragment.host not in master_hosts:
            unmerged.append(fragment.name)
            continue
        for path in fragment.paths:
            key = (fragment.host, path.path)
            if key in claimed:
                raise ConflictError(
                    f"Path {path.path} on {fragment.host} is claimed by "
                    f"{claimed[key].fragment} and {fragment.name}",
                    details={"host": fragment.host, "path": path.path},
                )
            claimed[key] = ComposedRoute(
                host=fragment.host,
                path=path.path,
                backend_service=path.backend_service,
                backend_port=path.backend_port,
                fragment=fragment.name,
                tenant_id=fragment.tenant_id,
            )

    return EntryPoint(
        masters=tuple(sorted(master_hosts.values())),
        routes=tuple(claimed[k] for k in sorted(claimed)),
        unmerged=tuple(unmerged),
    )
