"""
Global test fixtures for mongo-rest.

This module provides shared fixtures for all tests including:
- Mock MongoDB (mongomock-motor)
- Settings and application factories
- HTTP clients bound to the ASGI app
- Fixture documents
"""

import sys
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from mongo_rest.config import Settings  # noqa: E402
from mongo_rest.main import create_app  # noqa: E402


TEST_DB = "mongo_rest_test"
TEST_COLLECTION = "items"
AUTH_DB_URI = "mongodb://localhost/mongo_rest_test_auth"
UNIVERSAL_TOKEN = "universal-token"


# =============================================================================
# MongoDB Fixtures (mongomock-motor)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.

    Every connection URI resolves to this one in-memory store.
    """
    client = AsyncMongoMockClient()
    yield client
    client.close()


@pytest.fixture
def client_factory(mock_async_mongo_client):
    """Client factory handed to the connection resolver."""
    def _factory(uri: str):
        return mock_async_mongo_client
    return _factory


@pytest_asyncio.fixture
async def seed(mock_async_mongo_client):
    """
    Load documents into a collection.

    Usage:
        await seed([{"item": 1}], db="somedb", collection="things")
    """
    async def _seed(documents: list[dict[str, Any]], db: str = TEST_DB, collection: str = TEST_COLLECTION):
        target = mock_async_mongo_client[db][collection]
        if documents:
            await target.insert_many([dict(document) for document in documents])
        else:
            # Materialize an empty collection
            await target.insert_one({"_id": "placeholder"})
            await target.delete_one({"_id": "placeholder"})
        return target
    return _seed


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def default_config() -> dict:
    """Baseline configuration used by most API tests."""
    return {
        "db": "mongodb://localhost:27017",
        "server": {"port": 3000, "address": "0.0.0.0"},
        "access_control": {
            "allow_origin": "*",
            "allow_methods": "GET,POST,PUT,DELETE,HEAD,OPTIONS",
        },
        "human_readable_output": True,
        "collection_output_type": "json",
    }


@pytest.fixture
def auth_config(default_config) -> dict:
    """Baseline configuration with token authentication enabled."""
    return {
        **default_config,
        "auth": {
            "users_db_connection": AUTH_DB_URI,
            "token_db_connection": AUTH_DB_URI,
            "universal_auth_token": UNIVERSAL_TOKEN,
        },
    }


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================

@pytest.fixture
def make_app(client_factory):
    """Build an app for a configuration dict, backed by the mock store."""
    def _make(config: dict):
        return create_app(Settings(**config), client_factory=client_factory)
    return _make


@pytest_asyncio.fixture
async def api(make_app):
    """
    Create async test clients bound to freshly built apps.

    Usage:
        client = await api(config)
        response = await client.get("/dbs")
    """
    clients = []

    async def _api(config: dict) -> AsyncClient:
        app = make_app(config)
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _api

    for client in clients:
        await client.aclose()


# =============================================================================
# Document Fixtures
# =============================================================================

@pytest.fixture
def three_items() -> list[dict]:
    return [{"item": 1}, {"item": 2}, {"item": 3}]


@pytest.fixture
def items_with_target():
    """
    Three documents where the middle one carries the identifier under test.

    Returns a function taking that identifier.
    """
    def _make(target_id):
        return [
            {"_id": ObjectId(), "item": 1},
            {"_id": target_id, "item": 2},
            {"_id": ObjectId(), "item": 3},
        ]
    return _make
