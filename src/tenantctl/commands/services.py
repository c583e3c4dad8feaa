"""Command: tenantctl services - List the downstream service catalog."""

from rich.console import Console
from rich.table import Table


console = Console()


def services() -> None:
    """List the services every tenant is deployed to."""
    from provisioner.config import settings
    from provisioner.modules.catalog import ServiceCatalog

    catalog = ServiceCatalog.load(settings.service_catalog_path)

    table = Table(title="Service Catalog", show_header=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Prefix", no_wrap=True)
    table.add_column("Backend")
    table.add_column("Image")
    table.add_column("Data tier", no_wrap=True)
    table.add_column("Deploy job", style="dim")

    for s in catalog.services():
        tier = str(s.data_tier)
        if s.resource_kind:
            tier = f"{tier} ({s.resource_kind})"
        table.add_row(
            s.name,
            f"/<tenant>/{s.url_prefix}",
            f"{s.backend_service}:{s.backend_port}",
            s.image,
            tier,
            s.deploy_job,
        )

    console.print()
    console.print(table)
    console.print()
