"""
Tests for application assembly and lifespan.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import OperationFailure

from mongo_rest.config import Settings
from mongo_rest.main import create_app

AUTH_URI = "mongodb://localhost/mongo_rest_test_auth"


def build(config: dict):
    store = AsyncMongoMockClient()
    app = create_app(Settings(**config), client_factory=lambda uri: store)
    return app, store


def test_route_table_in_collection_mode():
    app, _ = build({"url_prefix": "/api"})

    paths = {route.path for route in app.routes}

    assert {
        "/api/dbs",
        "/api/{db}/",
        "/api/{db}/{collection}",
        "/api/{db}/{collection}/{id}",
    } <= paths


def test_route_table_in_database_mode():
    app, _ = build({"db": "mongodb://localhost/shop", "endpoint_root": "database"})

    paths = {route.path for route in app.routes}

    assert {"/", "/{collection}", "/{collection}/{id}"} <= paths
    assert not any("{db}" in path for path in paths)


def test_gates_are_installed_in_order():
    app, _ = build({"auth": {"users_db_connection": AUTH_URI, "token_db_connection": AUTH_URI}})

    assert app.state.gates.names == ["authentication", "access-control"]


def test_lifespan_creates_auth_indexes_and_closes_connections():
    app, _ = build({"auth": {"users_db_connection": AUTH_URI, "token_db_connection": AUTH_URI}})
    ensure_indexes = AsyncMock()

    with patch.object(app.state.auth_service, "ensure_indexes", ensure_indexes):
        with TestClient(app) as client:
            response = client.get("/dbs", params={"token": "missing"})
            assert response.status_code == 401

    ensure_indexes.assert_awaited_once()
    assert app.state.tools.resolver.cache.clients == {}


def test_index_failure_does_not_stop_startup():
    app, _ = build({"auth": {"users_db_connection": AUTH_URI, "token_db_connection": AUTH_URI}})
    failing = AsyncMock(side_effect=OperationFailure("not authorized"))

    with patch.object(app.state.auth_service, "ensure_indexes", failing):
        with TestClient(app) as client:
            response = client.get("/dbs", params={"token": "universal"})

    assert response.status_code == 401
