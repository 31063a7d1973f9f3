"""
Connection resolution for the document store.

A ``ConnectionResolver`` turns the canonical connection descriptor and a
database name into a live Motor handle. Clients and collection handles are
kept in an injected ``HandleCache`` for the lifetime of the process.
"""
from typing import Callable, Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import ConfigurationError, InvalidURI

from mongo_rest.config import ConnectionDescriptor
from mongo_rest.core.errors import StoreConnectionError
from mongo_rest.core.logging import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[str], AsyncIOMotorClient]


class HandleCache:
    """
    Best-effort cache of opened clients and collection handles.

    Entries are never evicted; a stale handle is acceptable because the
    driver reconnects on its own.
    """

    def __init__(self):
        self.clients: dict[str, AsyncIOMotorClient] = {}
        self.collections: dict[tuple[str, str, str], AsyncIOMotorCollection] = {}

    def clear(self) -> None:
        self.clients.clear()
        self.collections.clear()


class ConnectionResolver:
    """Resolve database and collection handles for a connection descriptor."""

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        client_factory: Optional[ClientFactory] = None,
        cache: Optional[HandleCache] = None,
    ):
        self.descriptor = descriptor
        self.client_factory = client_factory or AsyncIOMotorClient
        self.cache = cache if cache is not None else HandleCache()

    def _client_for(self, uri: str) -> AsyncIOMotorClient:
        client = self.cache.clients.get(uri)
        if client is None:
            try:
                client = self.client_factory(uri)
            except (InvalidURI, ConfigurationError, ValueError) as e:
                logger.error("db_open_error", message=str(e))
                raise StoreConnectionError(f"Cannot connect to store: {e}") from e
            self.cache.clients[uri] = client
        return client

    def client(self) -> AsyncIOMotorClient:
        """Get or create the client for the configured store."""
        return self._client_for(self.descriptor.uri)

    def resolve(self, database_name: str) -> AsyncIOMotorDatabase:
        """Get a specific database of the configured store by name."""
        return self.client()[database_name]

    def resolve_uri(self, uri: str) -> AsyncIOMotorDatabase:
        """
        Get the database named in a full connection URI.

        Used for the auth stores, which live behind their own descriptors.

        Raises:
            StoreConnectionError: If the URI is malformed or names no database
        """
        try:
            descriptor = ConnectionDescriptor.from_uri(uri)
        except ValueError as e:
            raise StoreConnectionError(str(e)) from e
        if not descriptor.database:
            raise StoreConnectionError(f"Connection URI names no database: {uri!r}")
        return self._client_for(descriptor.uri)[descriptor.database]

    def collection(self, database_name: str, collection_name: str) -> AsyncIOMotorCollection:
        """Get a collection handle, reusing a cached one when available."""
        key = (self.descriptor.uri, database_name, collection_name)
        collection = self.cache.collections.get(key)
        if collection is None:
            collection = self.resolve(database_name)[collection_name]
            self.cache.collections[key] = collection
        return collection

    def close(self) -> None:
        """Close all cached clients."""
        for client in self.cache.clients.values():
            client.close()
        self.cache.clear()
