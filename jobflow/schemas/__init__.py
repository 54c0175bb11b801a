"""Pydantic request/response schemas."""

from jobflow.schemas.auth import Credentials, CurrentUser, TokenPair
from jobflow.schemas.health import HealthResponse

__all__ = [
    "Credentials",
    "CurrentUser",
    "HealthResponse",
    "TokenPair",
]
