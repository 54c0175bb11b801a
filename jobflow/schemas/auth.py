"""Request/response schemas for auth operations."""

from pydantic import BaseModel, Field

from jobflow.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from jobflow.models.user import UserRole


class Credentials(BaseModel):
    """Username and password for signup or login."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )


class TokenPair(BaseModel):
    """Access and refresh tokens issued on login or refresh."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class CurrentUser(BaseModel):
    """Authenticated user (id, username, role) resolved from a bearer token."""

    id: int
    username: str
    role: UserRole

    class Config:
        from_attributes = True
