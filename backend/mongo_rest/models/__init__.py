"""
Models package - auth store documents.
"""
from mongo_rest.models.user import AuthToken, User

__all__ = ["AuthToken", "User"]
