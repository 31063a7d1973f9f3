"""
Auth store layout.
Users and issued tokens, each behind its own connection URI.
"""
from motor.motor_asyncio import AsyncIOMotorCollection


class Collections:
    """Default collection names in the auth stores."""
    USERS = "users"
    TOKENS = "tokens"


async def create_auth_indexes(
    users: AsyncIOMotorCollection,
    tokens: AsyncIOMotorCollection,
) -> None:
    """Create the lookup indexes used by login and token validation."""
    await users.create_index("email")
    await tokens.create_index("token", unique=True)
    await tokens.create_index("email")
    # Expired sessions are removed by the store
    await tokens.create_index("expires_at", expireAfterSeconds=0)
