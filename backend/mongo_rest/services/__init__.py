"""
Service layer for store operations, authentication and output rendering.
"""
from mongo_rest.services.auth_service import AuthService
from mongo_rest.services.output import OutputFormatter

__all__ = [
    "AuthService",
    "OutputFormatter",
]
