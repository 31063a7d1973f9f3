"""
Document service: the six store operations behind the REST routes.

Each method performs exactly one store call. Store failures are logged with
the driver message and re-raised as ``StoreConnectionError`` or
``StoreOperationError``.
"""
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, PyMongoError

from mongo_rest.core.errors import (
    InvalidRequestError,
    NotFoundError,
    StoreConnectionError,
    StoreOperationError,
)
from mongo_rest.dependencies.tools import Tools
from mongo_rest.schemas.query import QueryOptions

DELETE_RESULT = {"ok": 1}


def id_filter(document_id: str) -> dict[str, Any]:
    """
    Filter matching a path identifier.

    A 24-hex identifier matches either the ObjectId or the literal string, so
    caller-assigned string ids keep working.
    """
    if ObjectId.is_valid(document_id):
        return {"_id": {"$in": [ObjectId(document_id), document_id]}}
    return {"_id": document_id}


def is_operator_update(body: dict[str, Any]) -> bool:
    """
    True for ``{"$set": ...}`` style bodies, False for replacement documents.

    Raises:
        InvalidRequestError: If operators and plain fields are mixed
    """
    operators = [key.startswith("$") for key in body]
    if any(operators) and not all(operators):
        raise InvalidRequestError("Update body cannot mix operators and plain fields")
    return any(operators)


class DocumentService:
    """Service for database, collection and document operations."""

    def __init__(self, tools: Tools):
        self.resolver = tools.resolver
        self.access_control = tools.settings.db_access_control
        self.logger = tools.logger

    @contextmanager
    def store_errors(self, operation: str, database: Optional[str], collection: Optional[str] = None) -> Iterator[None]:
        try:
            yield
        except ConnectionFailure as e:
            self.logger.error("db_open_error", operation=operation, database=database, message=str(e))
            raise StoreConnectionError(str(e)) from e
        except PyMongoError as e:
            self.logger.error(
                "store_operation_error",
                operation=operation,
                database=database,
                collection=collection,
                message=str(e),
            )
            raise StoreOperationError(str(e)) from e

    async def list_databases(self) -> list[str]:
        """Names of every database visible to the connection, filtered by access control."""
        with self.store_errors("list_databases", None):
            names = await self.resolver.client().list_database_names()
        return [name for name in names if self.access_control.is_allowed(name)]

    async def list_collections(self, database: str) -> list[str]:
        """Collection names of a database, filtered by access control."""
        with self.store_errors("list_collections", database):
            names = await self.resolver.resolve(database).list_collection_names()
        return sorted(name for name in names if self.access_control.is_allowed(database, name))

    async def find_one(self, database: str, collection: str, document_id: str) -> dict[str, Any]:
        """
        Fetch one document by identifier.

        Raises:
            NotFoundError: If no document has this identifier
        """
        with self.store_errors("find_one", database, collection):
            document = await self.resolver.collection(database, collection).find_one(id_filter(document_id))
        if document is None:
            raise NotFoundError("Document not found")
        return document

    async def find(self, database: str, collection: str, options: QueryOptions) -> list[dict[str, Any]]:
        """Fetch every document matching the query options."""
        cursor = self.resolver.collection(database, collection).find(options.filter, options.projection)
        if options.sort:
            cursor = cursor.sort(options.sort)
        if options.skip:
            cursor = cursor.skip(options.skip)
        if options.limit:
            cursor = cursor.limit(options.limit)

        with self.store_errors("find", database, collection):
            return await cursor.to_list(length=None)

    async def insert(self, database: str, collection: str, body: Any) -> Optional[dict[str, Any]]:
        """
        Insert one document.

        Only the first element of an array body is stored. A caller-supplied
        ``_id`` is kept.

        Returns:
            The stored document, or None if the body was empty
        """
        document = body[0] if isinstance(body, list) and body else body
        if not document:
            return None
        if not isinstance(document, dict):
            raise InvalidRequestError("Request body must be a JSON object")

        with self.store_errors("insert", database, collection):
            result = await self.resolver.collection(database, collection).insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def update(self, database: str, collection: str, document_id: str, body: Any) -> dict[str, Any]:
        """
        Replace the identified document, or apply update operators.

        Returns:
            The document after the update

        Raises:
            NotFoundError: If no document has this identifier
        """
        if not isinstance(body, dict) or not body:
            raise InvalidRequestError("Request body must be a JSON object")

        target = self.resolver.collection(database, collection)
        with self.store_errors("update", database, collection):
            if is_operator_update(body):
                document = await target.find_one_and_update(
                    id_filter(document_id), body, return_document=ReturnDocument.AFTER
                )
            else:
                replacement = {key: value for key, value in body.items() if key != "_id"}
                document = await target.find_one_and_replace(
                    id_filter(document_id), replacement, return_document=ReturnDocument.AFTER
                )

        if document is None:
            raise NotFoundError("Document not found")
        return document

    async def delete(self, database: str, collection: str, document_id: str) -> dict[str, int]:
        """Delete the identified document; the result is the same whether or not it existed."""
        with self.store_errors("delete", database, collection):
            await self.resolver.collection(database, collection).delete_one(id_filter(document_id))
        return dict(DELETE_RESULT)
