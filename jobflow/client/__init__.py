"""Async client for the job-flow GraphQL API with coordinated token refresh."""

from jobflow.client.coordinator import BackoffPolicy, RefreshCoordinator
from jobflow.client.errors import ErrorKind, GraphQLRequestError
from jobflow.client.session import AuthSession, resolve_route
from jobflow.client.tokens import TokenCache, is_token_expired, token_role
from jobflow.client.transport import GraphQLClient

__all__ = [
    "AuthSession",
    "BackoffPolicy",
    "ErrorKind",
    "GraphQLClient",
    "GraphQLRequestError",
    "RefreshCoordinator",
    "TokenCache",
    "is_token_expired",
    "resolve_route",
    "token_role",
]
