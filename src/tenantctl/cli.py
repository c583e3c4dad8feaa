"""Main tenantctl CLI application."""

import typer
from rich.console import Console

from tenantctl import __version__
from tenantctl.commands import (
    deploy,
    deprovision,
    init_db,
    list_cmd,
    onboard,
    rollback,
    routes,
    services,
    show,
)


console = Console()

app = typer.Typer(
    name="tenantctl",
    help="Onboard, deprovision and inspect tenants.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command(name="onboard")(onboard.onboard)
app.command(name="deprovision")(deprovision.deprovision)
app.command(name="rollback")(rollback.rollback)
app.command(name="deploy")(deploy.deploy)
app.command(name="list")(list_cmd.list_tenants)
app.command(name="show")(show.show)
app.command(name="routes")(routes.routes)
app.command(name="services")(services.services)
app.command(name="init-db")(init_db.init_db)


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """tenantctl - Onboard, deprovision and inspect tenants."""
    if version:
        console.print(f"[bold cyan]tenantctl[/bold cyan] version {__version__}")
        raise typer.Exit()
    from provisioner.core.logging import configure_logging

    # Lifecycle events stay out of the tables unless something goes wrong
    configure_logging("WARNING", cache=False)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
