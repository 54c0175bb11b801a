"""Typed errors raised by the auth services; each maps to one GraphQL error code."""


class AuthServiceError(Exception):
    """Base error for signup, login, refresh and access checks."""

    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConflictError(AuthServiceError):
    """Raised on signup when the username is already taken."""

    code = "CONFLICT"


class UnauthorizedError(AuthServiceError):
    """Raised for bad credentials or any invalid, expired or revoked token."""

    code = "UNAUTHENTICATED"


class ForbiddenError(AuthServiceError):
    """Raised when an authenticated user lacks the required role."""

    code = "FORBIDDEN"


class ValidationError(AuthServiceError):
    """Raised when username or password fail length checks."""

    code = "BAD_USER_INPUT"


class InternalError(AuthServiceError):
    """Raised when persistence fails; never carries storage details."""

    code = "INTERNAL_SERVER_ERROR"
