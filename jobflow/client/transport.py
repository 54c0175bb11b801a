"""GraphQL over HTTP: bearer auth, network retries and the auth error interceptor."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, NoReturn

import httpx

from jobflow.client.coordinator import BackoffPolicy, RefreshCoordinator
from jobflow.client.errors import ErrorKind, GraphQLRequestError, classify_errors

logger = logging.getLogger(__name__)


def default_retry_policy() -> BackoffPolicy:
    """Network retries: 3 attempts, 300 ms initial delay, 2 s cap, jittered."""
    return BackoffPolicy(max_attempts=3, base_delay=0.3, max_delay=2.0, jitter=True)


class GraphQLClient:
    """
    Sends GraphQL operations to one endpoint.

    Authenticated operations get a fresh bearer token from the coordinator.
    Network failures (connect errors, timeouts) are retried here; HTTP
    responses and GraphQL errors are not. An UNAUTHENTICATED error on an
    authenticated operation logs the session out, catching server-side
    revocations the local expiry check cannot see.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        coordinator: RefreshCoordinator,
        graphql_url: str,
        retry_policy: BackoffPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.coordinator = coordinator
        self.graphql_url = graphql_url
        self.retry_policy = retry_policy or default_retry_policy()
        self._sleep = sleep

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        authenticated: bool = True,
    ) -> dict[str, Any]:
        """Run one operation and return its data. Raises GraphQLRequestError."""
        headers: dict[str, str] = {}
        if authenticated:
            token = await self.coordinator.get_valid_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        response = await self._post_with_retry(payload, headers)

        try:
            body = response.json()
        except ValueError:
            kind = ErrorKind.INTERNAL if response.status_code >= 500 else ErrorKind.UNKNOWN
            raise GraphQLRequestError(
                f"GraphQL endpoint returned non-JSON response ({response.status_code})", kind
            )

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            self._raise_for_errors(errors, authenticated)
        if response.status_code >= 400:
            raise GraphQLRequestError(
                f"GraphQL endpoint returned {response.status_code}", ErrorKind.INTERNAL
            )
        return (body.get("data") if isinstance(body, dict) else None) or {}

    def _raise_for_errors(self, errors: list[dict], authenticated: bool) -> NoReturn:
        kind = classify_errors(errors)
        first = errors[0] if isinstance(errors[0], dict) else {}
        message = first.get("message") or "GraphQL request failed"
        if kind is ErrorKind.UNAUTHENTICATED and authenticated:
            logger.warning("GraphQL auth error; logging out", extra={"kind": kind.value})
            self.coordinator.silent_logout()
        else:
            logger.error("GraphQL error: %s", message, extra={"kind": kind.value})
        raise GraphQLRequestError(message, kind)

    async def _post_with_retry(
        self, payload: dict[str, Any], headers: dict[str, str]
    ) -> httpx.Response:
        max_attempts = self.retry_policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                return await self.client.post(self.graphql_url, json=payload, headers=headers)
            except httpx.TransportError as e:
                logger.warning(
                    "Network error calling GraphQL endpoint",
                    extra={
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "error_type": type(e).__name__,
                    },
                )
                if attempt == max_attempts:
                    raise GraphQLRequestError(
                        f"Network error: {type(e).__name__}", ErrorKind.NETWORK
                    ) from e
                await self._sleep(self.retry_policy.delay_for(attempt - 1))
        raise GraphQLRequestError("No attempts configured", ErrorKind.NETWORK)
