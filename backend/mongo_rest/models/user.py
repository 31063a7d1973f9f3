"""
Auth store document models.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class User(BaseModel):
    """
    User document in the users store.

    Either ``hashed_password`` (bcrypt) or the legacy plain ``password`` is set.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = Field(None, alias="_id", description="Store identifier as string")
    email: str = Field(..., description="Login name, usually an email address")
    hashed_password: Optional[str] = Field(None, description="Bcrypt hashed password")
    password: Optional[str] = Field(None, description="Legacy plain password")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return None if value is None else str(value)


class AuthToken(BaseModel):
    """Issued token document in the tokens store."""
    token: str = Field(..., description="Signed token string")
    email: str = Field(..., description="Owner email")
    user_id: str = Field(..., description="Owner identifier in the users store")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime = Field(..., description="Token expiry timestamp")
