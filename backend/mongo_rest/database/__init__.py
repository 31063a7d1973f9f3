"""
Database module - store connection resolution and auth store layout.
"""
from mongo_rest.database.connections import ConnectionResolver, HandleCache
from mongo_rest.database.databases import auth_db

__all__ = [
    "ConnectionResolver",
    "HandleCache",
    "auth_db",
]
