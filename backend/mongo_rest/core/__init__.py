"""
Core module - errors, access control, security and logging.
"""
from mongo_rest.core.errors import (
    AccessDeniedError,
    AuthError,
    InvalidRequestError,
    MongoRestError,
    NotFoundError,
    StoreConnectionError,
    StoreOperationError,
)

__all__ = [
    "AccessDeniedError",
    "AuthError",
    "InvalidRequestError",
    "MongoRestError",
    "NotFoundError",
    "StoreConnectionError",
    "StoreOperationError",
]
