"""
Authentication service: login, token validation, logout and user creation.
"""
import hmac
from datetime import datetime, timezone
from typing import Any, Optional

from jose import JWTError
from motor.motor_asyncio import AsyncIOMotorCollection

from mongo_rest.config import AuthSettings
from mongo_rest.core.errors import AuthError, InvalidRequestError, NotFoundError
from mongo_rest.core.logging import get_logger
from mongo_rest.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    is_token_valid,
    verify_user_password,
)
from mongo_rest.database.connections import ConnectionResolver
from mongo_rest.database.databases import auth_db
from mongo_rest.models.user import AuthToken, User
from mongo_rest.schemas.auth import LoginRequest, LoginResponse

logger = get_logger(__name__)

UNIVERSAL_IDENTITY = "universal"


class AuthService:
    """Service for authentication operations against the users and tokens stores."""

    def __init__(
        self,
        users_collection: AsyncIOMotorCollection,
        tokens_collection: AsyncIOMotorCollection,
        auth: AuthSettings,
    ):
        self.users_collection = users_collection
        self.tokens_collection = tokens_collection
        self.auth = auth

    @classmethod
    def from_resolver(cls, resolver: ConnectionResolver, auth: AuthSettings) -> "AuthService":
        """Build the service on the stores named by the auth settings."""
        users_db = resolver.resolve_uri(auth.users_db_connection)
        tokens_db = resolver.resolve_uri(auth.token_db_connection)
        return cls(
            users_db[auth.users_collection or auth_db.Collections.USERS],
            tokens_db[auth.tokens_collection or auth_db.Collections.TOKENS],
            auth,
        )

    async def ensure_indexes(self) -> None:
        await auth_db.create_auth_indexes(self.users_collection, self.tokens_collection)

    async def login(self, request: LoginRequest) -> LoginResponse:
        """
        Authenticate a user and return a token.

        An unexpired token already issued to the user is reused; otherwise a
        new one is issued and persisted.

        Raises:
            NotFoundError: If no user has this email
            AuthError: If the password does not match
        """
        user_doc = await self.users_collection.find_one({"email": request.email})
        if not user_doc:
            logger.info("login_unknown_user", email=request.email)
            raise NotFoundError("User not found")

        if not verify_user_password(request.password, user_doc):
            logger.info("login_bad_password", email=request.email)
            raise AuthError("Invalid email or password")

        user = User.model_validate(user_doc)
        token = await self._find_reusable_token(user.email)
        if token is None:
            token = await self._issue_token(user)

        payload = decode_token(token, self.auth)
        expires_in = max(0, int(payload["exp"] - datetime.now(timezone.utc).timestamp()))

        logger.info("login", email=user.email)
        return LoginResponse(token=token, expires_in=expires_in)

    async def _find_reusable_token(self, email: str) -> Optional[str]:
        # Stored datetimes come back as naive UTC
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        doc = await self.tokens_collection.find_one(
            {"email": email, "expires_at": {"$gt": now}},
            sort=[("created_at", -1)],
        )
        if doc and is_token_valid(doc["token"], self.auth):
            return doc["token"]
        return None

    async def _issue_token(self, user: User) -> str:
        token, expires_at = create_access_token(user.email, user.id or "", self.auth)
        record = AuthToken(
            token=token,
            email=user.email,
            user_id=user.id or "",
            expires_at=expires_at,
        )
        await self.tokens_collection.insert_one(record.model_dump())
        return token

    def is_universal(self, token: str) -> bool:
        universal = self.auth.universal_auth_token
        return bool(universal) and hmac.compare_digest(token.encode(), universal.encode())

    async def authenticate(self, token: str) -> str:
        """
        Validate a presented token.

        Returns:
            Email of the token owner, or ``"universal"`` for the bypass token

        Raises:
            AuthError: If the token is invalid, expired or was revoked
        """
        if self.is_universal(token):
            return UNIVERSAL_IDENTITY

        try:
            payload = decode_token(token, self.auth)
        except JWTError:
            raise AuthError("Invalid or expired token")

        record = await self.tokens_collection.find_one({"token": token})
        if record is None:
            raise AuthError("Invalid or expired token")

        return payload.get("sub") or record["email"]

    async def logout(self, token: str) -> None:
        """
        Revoke a token.

        Raises:
            AuthError: If the token is not an issued session token
        """
        result = await self.tokens_collection.delete_one({"token": token})
        if result.deleted_count == 0:
            raise AuthError("Token is not an active session")

    async def create_user(self, email: str, password: str) -> str:
        """
        Add a user with a bcrypt-hashed password.

        Returns:
            Identifier of the created user

        Raises:
            InvalidRequestError: If the email is already registered
        """
        existing = await self.users_collection.find_one({"email": email})
        if existing:
            raise InvalidRequestError("User already exists")

        user_doc: dict[str, Any] = {
            "email": email,
            "hashed_password": hash_password(password),
            "created_at": datetime.now(timezone.utc),
        }
        result = await self.users_collection.insert_one(user_doc)
        return str(result.inserted_id)
