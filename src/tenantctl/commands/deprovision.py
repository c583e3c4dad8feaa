"""Command: tenantctl deprovision - Deprovision a tenant."""

import typer
from rich.console import Console


console = Console()


def deprovision(
    tenant_id: str = typer.Argument(..., help="Tenant to deprovision"),
    force: bool = typer.Option(
        False, "--force", help="Take over a tenant stuck in flight"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Remove a tenant's routes and data stores and mark it Deleted."""
    from provisioner.core.errors import AppException
    from provisioner.modules.tenants import TenantStatus
    from tenantctl.utils import open_orchestrator, print_result, run

    if not yes:
        confirm = typer.confirm(
            f"Deprovision '{tenant_id}'? Its routes and data stores will be deleted."
        )
        if not confirm:
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Exit(0)

    async def _deprovision():
        async with open_orchestrator() as orchestrator:
            return await orchestrator.deprovisioning.deprovision(tenant_id, force=force)

    try:
        result = run(_deprovision())
    except AppException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    print_result(console, result)
    if result.status is TenantStatus.FAILED:
        raise typer.Exit(1)
