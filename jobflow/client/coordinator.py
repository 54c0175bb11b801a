"""Single-flight access-token refresh with retry/backoff and silent logout."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from jobflow.client.errors import ErrorKind, RefreshFailedError, classify_errors
from jobflow.client.tokens import TokenCache, is_token_expired

logger = logging.getLogger(__name__)

REFRESH_MUTATION = """
mutation RefreshToken($token: String!) {
  refreshToken(refreshToken: $token) {
    access_token
    refresh_token
  }
}
"""


@dataclass
class BackoffPolicy:
    """Capped exponential backoff: delay(n) = min(max_delay, base_delay * 2**n)."""

    max_attempts: int = 3
    base_delay: float = 0.5  # seconds
    max_delay: float = 8.0  # seconds
    jitter: bool = False

    def delay_for(self, n: int) -> float:
        delay = min(self.max_delay, self.base_delay * (2**n))
        if self.jitter:
            delay = delay * (0.5 + random.random())
        return delay


class RefreshCoordinator:
    """
    Keeps at most one refresh request in flight for a client session.

    Callers that find the access token expired while a refresh is running are
    queued and resolved with that refresh's result, so N concurrent callers
    cost one call to the refreshToken mutation. Failed attempts are retried
    with backoff; once retries are exhausted every waiter gets None and the
    session is logged out.

    Create one per application and share it; it is not safe across event loops.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: TokenCache,
        graphql_url: str,
        policy: BackoffPolicy | None = None,
        on_logout: Callable[[], Any] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        expiry_leeway: float = 0.0,
    ) -> None:
        self.client = client
        self.cache = cache
        self.graphql_url = graphql_url
        self.policy = policy or BackoffPolicy()
        self.on_logout = on_logout
        self.expiry_leeway = expiry_leeway
        self._sleep = sleep
        self._is_refreshing = False
        self._waiters: list[asyncio.Future] = []

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def pending_count(self) -> int:
        """Number of callers waiting on the in-flight refresh."""
        return len(self._waiters)

    async def get_valid_token(self) -> str | None:
        """Return a non-expired access token, refreshing first if needed."""
        token = self.cache.access_token
        if not is_token_expired(token, leeway=self.expiry_leeway):
            return token
        return await self.refresh()

    async def refresh(self) -> str | None:
        """Refresh the token pair, or join the refresh already in flight."""
        if self._is_refreshing:
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            return await waiter

        refresh_token = self.cache.refresh_token
        if not refresh_token:
            self.silent_logout()
            return None

        self._is_refreshing = True
        token: str | None = None
        try:
            token = await self._refresh_with_retry(refresh_token)
        finally:
            self._drain(token)
            self._is_refreshing = False

        if token is None:
            self.silent_logout()
        return token

    def silent_logout(self) -> None:
        """Drop local tokens and hand control to the logout callback."""
        self.cache.clear()
        logger.info("Session logged out", extra={"event": "silent_logout"})
        if self.on_logout is not None:
            self.on_logout()

    def _drain(self, token: str | None) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(token)

    async def _refresh_with_retry(self, refresh_token: str) -> str | None:
        max_attempts = self.policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                return await self._request_refresh(refresh_token)
            except RefreshFailedError as e:
                error_type = e.kind.value
            except httpx.HTTPError as e:
                error_type = type(e).__name__
            logger.warning(
                "Refresh token attempt failed",
                extra={
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "error_type": error_type,
                },
            )
            if attempt < max_attempts:
                await self._sleep(self.policy.delay_for(attempt))
        return None

    async def _request_refresh(self, refresh_token: str) -> str:
        response = await self.client.post(
            self.graphql_url,
            json={"query": REFRESH_MUTATION, "variables": {"token": refresh_token}},
        )
        try:
            body = response.json()
        except ValueError:
            raise RefreshFailedError(
                f"Refresh returned non-JSON response ({response.status_code})",
                ErrorKind.INTERNAL if response.status_code >= 500 else ErrorKind.UNKNOWN,
            )
        if not isinstance(body, dict):
            raise RefreshFailedError("Refresh returned an unexpected payload")

        errors = body.get("errors")
        if errors:
            raise RefreshFailedError(
                "Refresh mutation returned errors", classify_errors(errors)
            )
        if response.status_code >= 400:
            raise RefreshFailedError(
                f"Refresh returned {response.status_code}", ErrorKind.INTERNAL
            )

        payload = (body.get("data") or {}).get("refreshToken") or {}
        access_token = payload.get("access_token")
        new_refresh_token = payload.get("refresh_token")
        if not access_token or not new_refresh_token:
            raise RefreshFailedError("No token returned from refresh")

        self.cache.store_pair(access_token, new_refresh_token)
        return access_token
