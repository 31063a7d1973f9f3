"""
Authentication router for login and logout.

Registered only when an ``auth`` section is configured.
"""
from bson import json_util
from bson.errors import BSONError
from fastapi import APIRouter, Request
from pydantic import ValidationError

from mongo_rest.config import Settings
from mongo_rest.core.errors import AuthError, InvalidRequestError
from mongo_rest.dependencies.gates import extract_token
from mongo_rest.schemas.auth import LoginRequest, LoginResponse, LogoutResponse
from mongo_rest.services.auth_service import AuthService

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def get_auth_service(request: Request) -> AuthService:
    """The application's auth service."""
    return request.app.state.auth_service


async def read_credentials(request: Request) -> LoginRequest:
    """
    Parse the login body, sent as JSON or as a form.

    Raises:
        InvalidRequestError: If the body is not JSON or lacks email/password
    """
    content_type = request.headers.get("Content-Type", "").split(";")[0].strip().lower()
    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        body = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        raw = await request.body()
        try:
            body = json_util.loads(raw) if raw.strip() else {}
        except (ValueError, BSONError):
            raise InvalidRequestError("Request body is not valid JSON")

    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    try:
        return LoginRequest.model_validate(body)
    except ValidationError:
        raise InvalidRequestError("Email and password are required")


def build_router(settings: Settings) -> APIRouter:
    router = APIRouter(prefix=settings.url_prefix, tags=["Authentication"])

    @router.post(
        "/login",
        response_model=LoginResponse,
        summary="Login and get an auth token",
    )
    async def login(request: Request):
        """
        Authenticate with email and password to receive a token.

        Pass the token as the `token` query parameter or as an
        `Authorization: Bearer` header on every other endpoint.
        """
        credentials = await read_credentials(request)
        return await get_auth_service(request).login(credentials)

    @router.post(
        "/logout",
        response_model=LogoutResponse,
        summary="Revoke the presented token",
    )
    async def logout(request: Request):
        token = extract_token(request)
        if not token:
            raise AuthError("Authentication required")
        await get_auth_service(request).logout(token)
        return LogoutResponse()

    return router
