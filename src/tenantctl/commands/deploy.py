"""Command: tenantctl deploy - Redeploy services into a tenant namespace."""

import typer
from rich.console import Console


console = Console()


def deploy(
    tenant_id: str = typer.Argument(..., help="Active tenant"),
    services: list[str] | None = typer.Option(
        None, "--service", "-s", help="Service to deploy (repeatable; default all)"
    ),
) -> None:
    """Trigger the tenant deploy job of the selected services.

    Used to retry services reported failed by onboarding.
    """
    from provisioner.core.errors import AppException, InvalidStateError
    from provisioner.modules.tenants import TenantStatus
    from tenantctl.utils import open_orchestrator, print_deployments, run

    async def _deploy():
        async with open_orchestrator() as orchestrator:
            tenant = await orchestrator.registry.require(tenant_id)
            if tenant.status is not TenantStatus.ACTIVE:
                raise InvalidStateError(
                    f"Tenant '{tenant_id}' is {tenant.status}; only Active "
                    "tenants can be redeployed"
                )
            return await orchestrator.fanout.deploy(tenant_id, services or None)

    try:
        results = run(_deploy())
    except AppException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    console.print()
    print_deployments(console, results)
    console.print()
    if any(not r.ok for r in results.values()):
        raise typer.Exit(1)
