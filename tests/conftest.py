"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Import all models to ensure they're registered with Base.metadata
import provisioner.modules.tenants.models  # noqa: F401
from provisioner.api.dependencies import get_job_queue, get_orchestrator
from provisioner.core.database import Base, create_session_factory, get_db
from provisioner.core.jobs import JobQueue
from provisioner.main import create_app
from provisioner.modules.catalog import ServiceCatalog
from provisioner.modules.fanout import InMemoryDeployTrigger
from provisioner.modules.identity import InMemoryIdentityBackend
from provisioner.modules.lifecycle import Orchestrator, build_orchestrator
from provisioner.modules.resources import InMemoryResourceBackend
from provisioner.modules.routing import InMemoryRoutingLayer


API_HOST = "api.example.com"


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Registry database in a temporary file.

    A file (rather than ``:memory:``) lets concurrent pipelines use
    separate connections, as they do against Postgres.
    """
    engine = create_async_engine(
        sqlite_url(tmp_path / "registry.db"),
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def catalog() -> ServiceCatalog:
    """The bundled catalog: ProductService (pooled) and OrderService (silo)."""
    return ServiceCatalog.load()


@pytest.fixture
def resource_backend() -> InMemoryResourceBackend:
    return InMemoryResourceBackend()


@pytest.fixture
def identity_backend() -> InMemoryIdentityBackend:
    return InMemoryIdentityBackend()


@pytest.fixture
def routing_layer() -> InMemoryRoutingLayer:
    return InMemoryRoutingLayer()


@pytest.fixture
def deploy_trigger() -> InMemoryDeployTrigger:
    return InMemoryDeployTrigger()


@pytest.fixture
def orchestrator(
    session_factory: async_sessionmaker[AsyncSession],
    catalog: ServiceCatalog,
    resource_backend: InMemoryResourceBackend,
    identity_backend: InMemoryIdentityBackend,
    routing_layer: InMemoryRoutingLayer,
    deploy_trigger: InMemoryDeployTrigger,
) -> Orchestrator:
    """Orchestrator wired to in-memory collaborators with fault injection."""
    return build_orchestrator(
        session_factory=session_factory,
        catalog=catalog,
        resource_backend=resource_backend,
        identity_backend=identity_backend,
        routing_layer=routing_layer,
        trigger=deploy_trigger,
        api_host=API_HOST,
    )


@pytest.fixture
def job_queue() -> AsyncMock:
    queue = AsyncMock(spec=JobQueue)
    queue.enqueue.return_value = "job-123"
    return queue


@pytest.fixture
async def app(
    orchestrator: Orchestrator,
    session_factory: async_sessionmaker[AsyncSession],
    job_queue: AsyncMock,
):
    """Create test application instance."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_orchestrator] = lambda: orchestrator
    application.dependency_overrides[get_job_queue] = lambda: job_queue

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"
