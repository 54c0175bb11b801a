"""Typed GraphQL error kinds seen by the client."""

from enum import Enum


class ErrorKind(str, Enum):
    """Client-side classification of a failed GraphQL call."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    BAD_USER_INPUT = "BAD_USER_INPUT"
    INTERNAL = "INTERNAL_SERVER_ERROR"
    NETWORK = "NETWORK"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_code(cls, code: object) -> "ErrorKind":
        """Map a GraphQL extensions.code value to an ErrorKind."""
        if isinstance(code, str):
            try:
                return cls(code)
            except ValueError:
                return cls.UNKNOWN
        return cls.UNKNOWN


class GraphQLRequestError(Exception):
    """Raised when a GraphQL call fails at the transport or in the response errors."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN) -> None:
        self.message = message
        self.kind = kind
        super().__init__(message)


class RefreshFailedError(Exception):
    """Raised inside the coordinator when one refresh attempt fails."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN) -> None:
        self.message = message
        self.kind = kind
        super().__init__(message)


def classify_errors(errors: list[dict]) -> ErrorKind:
    """Pick the kind of the first error carrying a known code (UNAUTHENTICATED wins)."""
    kinds = [
        ErrorKind.from_code((err.get("extensions") or {}).get("code"))
        for err in errors
        if isinstance(err, dict)
    ]
    if ErrorKind.UNAUTHENTICATED in kinds:
        return ErrorKind.UNAUTHENTICATED
    for kind in kinds:
        if kind is not ErrorKind.UNKNOWN:
            return kind
    return ErrorKind.UNKNOWN
