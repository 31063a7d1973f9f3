"""
Request/response schemas.
"""
from mongo_rest.schemas.auth import LoginRequest, LoginResponse, LogoutResponse
from mongo_rest.schemas.query import OutputType, QueryOptions

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "OutputType",
    "QueryOptions",
]
