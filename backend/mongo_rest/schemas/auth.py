"""
Authentication request/response schemas.
"""
from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    """Login request body."""
    email: str = Field(..., min_length=1, description="User email address")
    password: str = Field(..., min_length=1, description="User password")

    @field_validator("email")
    @classmethod
    def _strip_email(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("email must not be blank")
        return value


class LoginResponse(BaseModel):
    """Login response with the auth token."""
    token: str = Field(..., description="Auth token for subsequent requests")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Seconds until the token expires")


class LogoutResponse(BaseModel):
    """Logout acknowledgement."""
    ok: int = Field(default=1)
