"""
API Routers module.
"""
from mongo_rest.routers import auth, documents

__all__ = ["auth", "documents"]
