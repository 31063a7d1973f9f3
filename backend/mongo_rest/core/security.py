"""
Security utilities for password hashing and auth token management.
"""
import hmac
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from mongo_rest.config import AuthSettings

# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """
    Hash a plain password using bcrypt.

    Args:
        plain_password: The plain text password to hash

    Returns:
        Hashed password string
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def verify_user_password(plain_password: str, user_doc: dict[str, Any]) -> bool:
    """
    Check a password against a users-store document.

    Documents created by ``mongo-rest create-user`` carry ``hashed_password``;
    older stores keep the password in a plain ``password`` field.
    """
    hashed = user_doc.get("hashed_password")
    if hashed:
        return verify_password(plain_password, hashed)

    stored = user_doc.get("password")
    if stored is None:
        return False
    return hmac.compare_digest(str(stored).encode(), plain_password.encode())


def create_access_token(
    email: str,
    user_id: str,
    auth: AuthSettings,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """
    Create a signed auth token.

    Args:
        email: User email, stored as the token subject
        user_id: Users-store identifier of the user
        auth: Auth settings holding the signing secret and lifetime
        expires_delta: Optional custom expiration time

    Returns:
        Encoded token string and its expiry timestamp
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=auth.token_expire_minutes)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": email,
        "uid": user_id,
        "jti": uuid.uuid4().hex,
        "exp": expire,
        "iat": now,
    }

    token = jwt.encode(payload, auth.token_secret, algorithm=auth.token_algorithm)
    return token, expire


def decode_token(token: str, auth: AuthSettings) -> dict[str, Any]:
    """
    Decode and validate an auth token.

    Raises:
        JWTError: If token is invalid or expired
    """
    return jwt.decode(token, auth.token_secret, algorithms=[auth.token_algorithm])


def is_token_valid(token: str, auth: AuthSettings) -> bool:
    """Signature and expiry check only; store presence is checked by the caller."""
    try:
        decode_token(token, auth)
    except JWTError:
        return False
    return True
