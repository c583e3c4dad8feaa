"""Command: tenantctl show - Show one tenant."""

import typer
from rich.console import Console
from rich.table import Table


console = Console()


def show(tenant_id: str = typer.Argument(..., help="Tenant to show")) -> None:
    """Show a tenant's record, saga progress, routes, stores and deployments."""
    from provisioner.core.errors import AppException
    from tenantctl.utils import open_orchestrator, run, styled

    async def _show():
        async with open_orchestrator() as orchestrator:
            tenant = await orchestrator.registry.require(tenant_id)
            routes = await orchestrator.routing.routes_for_tenant(tenant_id)
            resources = await orchestrator.resources.list_for_tenant(tenant_id)
            records = await orchestrator.fanout.records(tenant_id)
            return tenant, routes, resources, records

    try:
        tenant, routes, resources, records = run(_show())
    except AppException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    console.print(f"\n[bold cyan]{tenant.tenant_id}[/bold cyan] ({tenant.company_name})")
    console.print(f"  Status:    {styled(str(tenant.status))}")
    console.print(f"  Plan:      {tenant.plan}")
    console.print(f"  Admin:     {tenant.admin_email}")
    console.print(f"  Created:   {tenant.created_at:%Y-%m-%d %H:%M:%S}")
    console.print(f"  Completed: {', '.join(tenant.completed_stages) or '-'}")
    if tenant.last_error:
        console.print(f"  Error:     [red]{tenant.last_error}[/red]")

    if routes:
        table = Table(title="Routes", show_header=True)
        table.add_column("Fragment", style="cyan")
        table.add_column("Path")
        table.add_column("Backend")
        for fragment in routes:
            for path in fragment.paths:
                table.add_row(
                    fragment.name,
                    path.path,
                    f"{path.backend_service}:{path.backend_port}",
                )
        console.print()
        console.print(table)

    if resources:
        console.print("\n[bold]Data stores[/bold]")
        for r in resources:
            console.print(f"  {r.resource_name} ({r.service_name})")

    if records:
        table = Table(title="Deployments", show_header=True)
        table.add_column("Service", style="cyan")
        table.add_column("Image")
        table.add_column("Status")
        table.add_column("Error")
        for d in records:
            table.add_row(d.service_name, d.image, styled(str(d.status)), d.error or "")
        console.print()
        console.print(table)
    console.print()
