"""Utility functions for the tenantctl CLI."""

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from rich.console import Console
from rich.table import Table

from provisioner.modules.fanout import DeploymentResult
from provisioner.modules.lifecycle import LifecycleResult, OnboardingResult, Orchestrator


T = TypeVar("T")

STATUS_STYLES = {
    "Provisioning": "yellow",
    "Active": "green",
    "Deprovisioning": "yellow",
    "Deleted": "dim",
    "Failed": "red",
    "Pending": "yellow",
    "Deployed": "green",
    "applied": "green",
    "skipped": "dim",
    "reverted": "cyan",
    "failed": "red",
}


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine from a synchronous typer command."""
    return asyncio.run(coro)


@asynccontextmanager
async def open_orchestrator() -> AsyncIterator[Orchestrator]:
    """Orchestrator backed by the configured registry and manifests directory.

    Pipelines run in-process; service overlays are rendered under the
    manifests directory.
    """
    from provisioner.config import settings
    from provisioner.core.database import create_engine, create_session_factory
    from provisioner.modules.lifecycle import build_from_settings

    engine = create_engine()
    try:
        yield build_from_settings(settings, create_session_factory(engine))
    finally:
        await engine.dispose()


def styled(value: str) -> str:
    style = STATUS_STYLES.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


def print_result(console: Console, result: LifecycleResult) -> None:
    """Print a pipeline result as a stage table plus deployment outcomes."""
    table = Table(
        title=f"{result.operation} {result.tenant_id}: {styled(str(result.status))}",
        show_header=True,
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Stage", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Error")
    for index, stage in enumerate(result.stages, start=1):
        table.add_row(str(index), stage.name, styled(str(stage.status)), stage.error or "")

    console.print()
    console.print(table)

    if isinstance(result, OnboardingResult) and result.deployments:
        print_deployments(console, result.deployments)

    if result.error is not None:
        color = "yellow" if result.status == "Active" else "red"
        console.print(f"\n[{color}]{result.error.message}[/{color}]")
    console.print()


def print_deployments(console: Console, deployments: dict[str, DeploymentResult]) -> None:
    table = Table(title="Deployments", show_header=True)
    table.add_column("Service", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Job")
    table.add_column("Error")
    for name in sorted(deployments):
        d = deployments[name]
        table.add_row(name, styled(str(d.status)), d.job_id or "", d.error or "")
    console.print(table)
