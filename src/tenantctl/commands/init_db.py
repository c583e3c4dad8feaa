"""Command: tenantctl init-db - Create the registry tables."""

from rich.console import Console


console = Console()


def init_db() -> None:
    """Create the registry tables if they do not exist.

    For local use; deployed databases are migrated with Alembic.
    """
    from provisioner.core.database import Base, create_engine
    from provisioner.modules import tenants  # noqa: F401
    from tenantctl.utils import run

    async def _init() -> None:
        engine = create_engine()
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        finally:
            await engine.dispose()

    run(_init())
    console.print("[green]✓[/green] Registry tables are ready")
