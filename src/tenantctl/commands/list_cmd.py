"""Command: tenantctl list - List tenants."""

import typer
from rich.console import Console
from rich.table import Table


console = Console()


def list_tenants(
    status: str | None = typer.Option(
        None, "--status", "-s", help="Only show tenants in this status"
    ),
) -> None:
    """List tenants with their status.

    Exits non-zero when any listed tenant is Failed.
    """
    from provisioner.modules.tenants import TenantStatus
    from tenantctl.utils import open_orchestrator, run, styled

    try:
        status_filter = TenantStatus(status.capitalize()) if status else None
    except ValueError as e:
        console.print(f"[red]Error:[/red] Unknown status '{status}'")
        raise typer.Exit(2) from e

    async def _list():
        async with open_orchestrator() as orchestrator:
            return await orchestrator.registry.list_tenants(status_filter)

    tenants = run(_list())
    if not tenants:
        console.print("[yellow]No tenants found.[/yellow]")
        return

    table = Table(title="Tenants", show_header=True)
    table.add_column("Tenant", style="cyan", no_wrap=True)
    table.add_column("Company")
    table.add_column("Plan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Last error")

    for t in tenants:
        table.add_row(
            t.tenant_id,
            t.company_name,
            str(t.plan),
            styled(str(t.status)),
            t.last_error or "",
        )

    console.print()
    console.print(table)
    console.print()

    if any(t.status is TenantStatus.FAILED for t in tenants):
        raise typer.Exit(1)
