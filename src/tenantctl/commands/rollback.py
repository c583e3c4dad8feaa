"""Command: tenantctl rollback - Undo a failed onboarding."""

import typer
from rich.console import Console


console = Console()


def rollback(
    tenant_id: str = typer.Argument(..., help="Failed tenant to roll back"),
) -> None:
    """Run the compensations of every applied onboarding stage, newest first."""
    from provisioner.core.errors import AppException
    from provisioner.modules.tenants import TenantStatus
    from tenantctl.utils import open_orchestrator, print_result, run

    async def _rollback():
        async with open_orchestrator() as orchestrator:
            return await orchestrator.rollbacks.rollback(tenant_id)

    try:
        result = run(_rollback())
    except AppException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    print_result(console, result)
    if result.status is TenantStatus.FAILED:
        raise typer.Exit(1)
