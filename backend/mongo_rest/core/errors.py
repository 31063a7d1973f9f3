"""
Error taxonomy and the FastAPI exception handlers that render it.
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.errors import ConnectionFailure, PyMongoError

from mongo_rest.core.logging import get_logger

logger = get_logger(__name__)

ACCESS_DENIED_MESSAGE = "Access to db is not allowed"
SERVER_ERROR_MESSAGE = "Server error"


class MongoRestError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = SERVER_ERROR_MESSAGE

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class StoreConnectionError(MongoRestError):
    """The store is unreachable or the connection descriptor is malformed."""


class StoreOperationError(MongoRestError):
    """An insert, update or delete failed in the store."""


class NotFoundError(MongoRestError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class InvalidRequestError(MongoRestError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Bad request"


class AuthError(MongoRestError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Could not validate credentials"


class AccessDeniedError(MongoRestError):
    """Rejected by the access-control gate. Rendered as plain text."""

    status_code = status.HTTP_403_FORBIDDEN
    detail = ACCESS_DENIED_MESSAGE


def register_exception_handlers(app: FastAPI, access_denied_status: int = 403) -> None:
    """
    Install handlers for the error taxonomy on the application.

    Args:
        app: FastAPI application
        access_denied_status: Status code used for access-control denials
    """

    async def access_denied_handler(request: Request, exc: AccessDeniedError):
        return PlainTextResponse(exc.detail, status_code=access_denied_status)

    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(
            {"detail": exc.detail},
            status_code=exc.status_code,
            headers={"WWW-Authenticate": "Bearer"},
        )

    async def server_error_handler(request: Request, exc: MongoRestError):
        # Already logged with the driver message where it was raised
        return JSONResponse({"detail": SERVER_ERROR_MESSAGE}, status_code=exc.status_code)

    async def mongo_rest_error_handler(request: Request, exc: MongoRestError):
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)

    async def driver_error_handler(request: Request, exc: PyMongoError):
        kind = "connection_error" if isinstance(exc, ConnectionFailure) else "driver_error"
        logger.error(kind, message=str(exc), method=request.method, path=request.url.path)
        return JSONResponse(
            {"detail": SERVER_ERROR_MESSAGE},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    app.add_exception_handler(AccessDeniedError, access_denied_handler)
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(StoreConnectionError, server_error_handler)
    app.add_exception_handler(StoreOperationError, server_error_handler)
    app.add_exception_handler(MongoRestError, mongo_rest_error_handler)
    app.add_exception_handler(PyMongoError, driver_error_handler)
