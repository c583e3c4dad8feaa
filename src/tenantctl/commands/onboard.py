"""Command: tenantctl onboard - Onboard a tenant."""

import typer
from rich.console import Console


console = Console()


def onboard(
    company_name: str = typer.Argument(..., help="Company name from signup"),
    admin_email: str = typer.Option(..., "--email", "-e", help="Administrator email"),
    plan: str = typer.Option("pooled", "--plan", "-p", help="pooled or silo"),
    tenant_id: str | None = typer.Option(
        None, "--tenant-id", help="Explicit tenant id (defaults to the slug)"
    ),
) -> None:
    """Onboard a tenant and wait for the terminal status.

    Re-running for a Failed tenant resumes from the failed stage.
    """
    from provisioner.core.errors import AppException
    from provisioner.modules.tenants import TenantStatus
    from tenantctl.utils import open_orchestrator, print_result, run

    async def _onboard():
        async with open_orchestrator() as orchestrator:
            return await orchestrator.onboarding.onboard(
                company_name, admin_email, plan, tenant_id=tenant_id
            )

    try:
        result = run(_onboard())
    except AppException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    print_result(console, result)
    if result.status is TenantStatus.FAILED:
        raise typer.Exit(1)
