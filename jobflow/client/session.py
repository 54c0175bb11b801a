"""Application-level auth session: login/logout, periodic refresh and route guards."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any

import httpx

from jobflow.client.coordinator import BackoffPolicy, RefreshCoordinator
from jobflow.client.errors import GraphQLRequestError
from jobflow.client.tokens import TokenCache, is_token_expired, token_role
from jobflow.client.transport import GraphQLClient

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
LANDING_PATH = "/"
DASHBOARD_PATH = "/dashboard"
ADMIN_PATH = "/admin"

# Where a user lands when a route rejects their role.
ROLE_HOME = {
    "SUPERVISOR": ADMIN_PATH,
    "REQUESTER": DASHBOARD_PATH,
    "RESOLVER": DASHBOARD_PATH,
}

SIGNUP_MUTATION = """
mutation Signup($username: String!, $password: String!) {
  signup(username: $username, password: $password) { message }
}
"""

LOGIN_MUTATION = """
mutation Login($username: String!, $password: String!) {
  login(username: $username, password: $password) {
    access_token
    refresh_token
  }
}
"""

LOGOUT_MUTATION = """
mutation Logout {
  logout { message }
}
"""

SECURE_DATA_QUERY = "query SecureData { secureData }"


def resolve_route(
    path: str,
    access_token: str | None,
    role: str | None,
    allowed_roles: Iterable[str] | None = None,
) -> str:
    """
    Return the path to show for a request to `path`.

    The landing page sends signed-in users to the dashboard. Guarded paths
    (anything but landing, login and signup) need a token,
    and a role in allowed_roles when that is set.
    """
    if path in (LOGIN_PATH, SIGNUP_PATH):
        return path
    if path == LANDING_PATH:
        return DASHBOARD_PATH if access_token else LANDING_PATH
    if not access_token:
        return LOGIN_PATH
    if allowed_roles is not None:
        allowed = set(allowed_roles)
        if role is None or role not in allowed:
            return ROLE_HOME.get(role or "", LOGIN_PATH)
    return path


class AuthSession:
    """
    Owns the token cache, refresh coordinator and GraphQL client of one app.

    on_navigate receives the path whenever the session redirects (silent
    logout goes to /login unless already there).
    """

    def __init__(
        self,
        graphql_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        cache: TokenCache | None = None,
        on_navigate: Callable[[str], Any] | None = None,
        refresh_policy: BackoffPolicy | None = None,
        retry_policy: BackoffPolicy | None = None,
        check_interval: float = 300.0,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(30.0))
        self.cache = cache or TokenCache()
        self.on_navigate = on_navigate
        self.check_interval = check_interval
        self.current_path = LANDING_PATH
        self.coordinator = RefreshCoordinator(
            self.client,
            self.cache,
            graphql_url,
            policy=refresh_policy,
            on_logout=self._redirect_to_login,
        )
        self.graphql = GraphQLClient(
            self.client, self.coordinator, graphql_url, retry_policy=retry_policy
        )
        self._check_task: asyncio.Task | None = None

    async def __aenter__(self) -> "AuthSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def access_token(self) -> str | None:
        return self.cache.access_token

    @property
    def role(self) -> str | None:
        return token_role(self.cache.access_token)

    @property
    def is_authenticated(self) -> bool:
        return self.cache.access_token is not None

    def navigate(self, path: str) -> None:
        self.current_path = path
        if self.on_navigate is not None:
            self.on_navigate(path)

    def _redirect_to_login(self) -> None:
        if self.current_path != LOGIN_PATH:
            self.navigate(LOGIN_PATH)

    def route_for(self, path: str, allowed_roles: Iterable[str] | None = None) -> str:
        """Apply the route guard to `path` for the current token and role."""
        return resolve_route(path, self.access_token, self.role, allowed_roles)

    async def signup(self, username: str, password: str) -> str:
        data = await self.graphql.execute(
            SIGNUP_MUTATION,
            {"username": username, "password": password},
            authenticated=False,
        )
        return data["signup"]["message"]

    async def login(self, username: str, password: str) -> str | None:
        """Log in and store the token pair; returns the user's role."""
        data = await self.graphql.execute(
            LOGIN_MUTATION,
            {"username": username, "password": password},
            authenticated=False,
        )
        tokens = data["login"]
        self.cache.store_pair(tokens["access_token"], tokens["refresh_token"])
        return self.role

    async def logout(self) -> None:
        """Revoke the refresh token server-side when possible, then log out locally."""
        try:
            if self.cache.access_token:
                await self.graphql.execute(LOGOUT_MUTATION)
        except GraphQLRequestError as e:
            logger.warning(
                "Server-side logout failed", extra={"kind": e.kind.value}
            )
        finally:
            self.coordinator.silent_logout()

    async def secure_data(self) -> str:
        data = await self.graphql.execute(SECURE_DATA_QUERY)
        return data["secureData"]

    async def check_token(self) -> str | None:
        """Refresh ahead of use when the stored access token has expired."""
        if self.current_path == LOGIN_PATH:
            return None
        token = self.cache.access_token
        if not token:
            return None
        if is_token_expired(token):
            return await self.coordinator.refresh()
        return token

    async def _run_checks(self) -> None:
        while True:
            await self.check_token()
            await asyncio.sleep(self.check_interval)

    def start(self) -> None:
        """Begin the periodic token check (first check runs immediately)."""
        if self._check_task is None or self._check_task.done():
            self._check_task = asyncio.create_task(self._run_checks())

    async def close(self) -> None:
        if self._check_task is not None:
            self._check_task.cancel()
            try:
                await self._check_task
            except asyncio.CancelledError:
                pass
            self._check_task = None
        if self._owns_client:
            await self.client.aclose()
