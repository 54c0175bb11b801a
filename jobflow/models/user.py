"""ORM model for application users (auth and role-based access)."""

import enum

from sqlalchemy import Column, DateTime, Integer, String, func

from jobflow.models.base import Base


class UserRole(str, enum.Enum):
    """Roles a job-flow account can hold."""

    REQUESTER = "REQUESTER"
    RESOLVER = "RESOLVER"
    SUPERVISOR = "SUPERVISOR"


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    current_refresh_token_hash holds the bcrypt hash of the only refresh token
    that is currently accepted for this user; NULL means signed out.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=UserRole.REQUESTER.value)
    current_refresh_token_hash = Column(String(255), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
