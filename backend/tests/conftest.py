"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from mediation.client import ApiClient
from mediation.db.database import close_database, init_database
from mediation.main import app


@pytest.fixture(autouse=True)
async def setup_test_db():
    """Set up a test database for each test."""
    # Create a temporary database file
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    # Initialize the database
    await init_database(db_path)

    yield

    # Clean up
    await close_database()
    os.unlink(db_path)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
async def api() -> AsyncGenerator[ApiClient, None]:
    """An ApiClient talking to the app in-process."""
    async with ApiClient("http://test/api/", transport=ASGITransport(app=app), allow_fallback=False) as api:
        yield api


@pytest.fixture
def make_family(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Create a node family with a draft version 1 and the given subnodes."""

    async def _make(
        name: str = "SFTP Collector",
        subnodes: tuple[str, ...] = ("Connection Handler", "File Scanner"),
        parameters: tuple[str, ...] = (),
    ) -> dict[str, Any]:
        response = await client.post("/api/node-families/", json={"name": name, "description": f"{name} node"})
        assert response.status_code == 201
        family = response.json()
        response = await client.post(
            f"/api/node-families/{family['id']}/versions/",
            json={"changelog": "initial version", "parameters": list(parameters)},
        )
        assert response.status_code == 201
        for subnode in subnodes:
            response = await client.post("/api/subnodes/", json={"name": subnode, "node_family": family["id"]})
            assert response.status_code == 201
        return (await client.get(f"/api/node-families/{family['id']}/")).json()

    return _make


@pytest.fixture
def make_flow(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Create a flow, optionally placing the given families in a chain."""

    async def _make(name: str = "Charging Flow", families: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        response = await client.post("/api/flows/", json={"name": name, "description": "test flow"})
        assert response.status_code == 201
        flow = response.json()
        previous = None
        for family in families or []:
            response = await client.post(
                "/api/flownodes/",
                json={"flow_id": flow["id"], "node_id": family["id"], "from_node": previous},
            )
            assert response.status_code == 201, response.text
            previous = response.json()["id"]
        return flow

    return _make
