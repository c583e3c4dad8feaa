"""Command: tenantctl routes - Show the composed routing entry point."""

import typer
from rich.console import Console
from rich.table import Table


console = Console()


def routes(
    tenant_id: str | None = typer.Option(
        None, "--tenant", "-t", help="Only show this tenant's routes"
    ),
) -> None:
    """Merge every stored fragment and print the effective routing table."""
    from provisioner.core.errors import AppException
    from tenantctl.utils import open_orchestrator, run

    async def _routes():
        async with open_orchestrator() as orchestrator:
            return await orchestrator.routing.entry_point()

    try:
        entry_point = run(_routes())
    except AppException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    composed = [
        r for r in entry_point.routes if tenant_id is None or r.tenant_id == tenant_id
    ]

    table = Table(title=f"Entry point: {', '.join(entry_point.masters) or '-'}")
    table.add_column("Host", no_wrap=True)
    table.add_column("Path", style="cyan", no_wrap=True)
    table.add_column("Backend")
    table.add_column("Fragment", style="dim")
    for r in composed:
        table.add_row(r.host, r.path, f"{r.backend_service}:{r.backend_port}", r.fragment)

    console.print()
    console.print(table)
    if entry_point.unmerged:
        console.print(
            "\n[yellow]Warning:[/yellow] fragments without a master: "
            + ", ".join(entry_point.unmerged)
        )
    console.print()
