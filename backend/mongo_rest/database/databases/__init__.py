"""
Store layouts owned by the service itself.
"""
from mongo_rest.database.databases import auth_db

__all__ = ["auth_db"]
