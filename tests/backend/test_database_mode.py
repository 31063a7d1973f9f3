"""
Tests for the ``database`` endpoint root, where the database comes from the
connection descriptor rather than the URL.
"""

import pytest
from bson import ObjectId

TEST_DB = "mongo_rest_test"


@pytest.fixture
def database_config(default_config) -> dict:
    return {
        **default_config,
        "db": f"mongodb://localhost:27017/{TEST_DB}",
        "endpoint_root": "database",
    }


@pytest.mark.asyncio
async def test_list_collections_at_root(api, seed, database_config):
    await seed([{"a": 1}], collection="orders")
    await seed([{"a": 1}], collection="customers")
    client = await api(database_config)

    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == ["customers", "orders"]


@pytest.mark.asyncio
async def test_database_listing_is_disabled(api, database_config):
    client = await api(database_config)

    response = await client.get("/dbs")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_crud_without_database_segment(api, database_config):
    client = await api(database_config)

    created = await client.post("/orders", json={"total": 10})
    doc_id = created.json()["_id"]
    updated = await client.put(f"/orders/{doc_id}", json={"$set": {"total": 12}})
    fetched = await client.get(f"/orders/{doc_id}")
    listed = await client.get("/orders")
    deleted = await client.delete(f"/orders/{doc_id}")

    assert created.status_code == 201
    assert updated.json()["total"] == 12
    assert fetched.json() == {"_id": doc_id, "total": 12}
    assert [doc["_id"] for doc in listed.json()] == [doc_id]
    assert deleted.json() == {"ok": 1}
    assert (await client.get(f"/orders/{doc_id}")).status_code == 404


@pytest.mark.asyncio
async def test_missing_document(api, seed, database_config):
    await seed([{"a": 1}], collection="orders")
    client = await api(database_config)

    response = await client.get(f"/orders/{ObjectId()}")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_collection_allow_list(api, seed, database_config):
    await seed([{"a": 1}], collection="orders")
    await seed([{"a": 1}], collection="customers")
    client = await api({**database_config, "db_access_control": ["orders"]})

    assert (await client.get("/")).json() == ["orders"]
    assert (await client.get("/orders")).status_code == 200
    assert (await client.get("/customers")).status_code == 403


@pytest.mark.asyncio
async def test_url_prefix(api, seed, database_config):
    await seed([{"a": 1}], collection="orders")
    client = await api({**database_config, "url_prefix": "rest"})

    assert (await client.get("/rest/orders")).status_code == 200
    assert (await client.get("/rest/")).json() == ["orders"]


@pytest.mark.asyncio
async def test_collection_named_dbs(api, mock_async_mongo_client, database_config):
    client = await api(database_config)

    inserted = await client.post("/dbs", json={"a": 1})
    queried = await client.get("/dbs")

    assert inserted.status_code == 201
    assert await mock_async_mongo_client[TEST_DB]["dbs"].count_documents({}) == 1
    assert queried.status_code == 404
