"""SQLAlchemy ORM models."""

from jobflow.models.base import Base
from jobflow.models.user import User, UserRole

__all__ = ["Base", "User", "UserRole"]
