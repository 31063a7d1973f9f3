"""
Backend-specific test fixtures and configuration.

These fixtures extend the global fixtures with helpers for the auth
stores and the auth service.
"""

import pytest
import pytest_asyncio

from mongo_rest.config import AuthSettings
from mongo_rest.core.security import hash_password
from mongo_rest.services.auth_service import AuthService

AUTH_DB = "mongo_rest_test_auth"
USER_EMAIL = "user@example.com"
USER_PASSWORD = "correct-horse"


# =============================================================================
# Auth Store Fixtures
# =============================================================================

@pytest.fixture
def users_collection(mock_async_mongo_client):
    return mock_async_mongo_client[AUTH_DB]["users"]


@pytest.fixture
def tokens_collection(mock_async_mongo_client):
    return mock_async_mongo_client[AUTH_DB]["tokens"]


@pytest_asyncio.fixture
async def registered_user(users_collection) -> dict:
    """A user with a bcrypt-hashed password."""
    user = {"email": USER_EMAIL, "hashed_password": hash_password(USER_PASSWORD)}
    result = await users_collection.insert_one(user)
    return {**user, "_id": result.inserted_id, "password": USER_PASSWORD}


@pytest_asyncio.fixture
async def legacy_user(users_collection) -> dict:
    """A user stored with a plain password, as older user stores have them."""
    user = {"email": "legacy@example.com", "password": "plain-password"}
    await users_collection.insert_one(dict(user))
    return user


# =============================================================================
# Auth Service Fixtures
# =============================================================================

@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(
        users_db_connection=f"mongodb://localhost/{AUTH_DB}",
        token_db_connection=f"mongodb://localhost/{AUTH_DB}",
        universal_auth_token="universal-token",
        token_secret="test-secret",
    )


@pytest.fixture
def auth_service(users_collection, tokens_collection, auth_settings) -> AuthService:
    return AuthService(users_collection, tokens_collection, auth_settings)
