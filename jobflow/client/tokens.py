"""Client-side token cache and local (network-free) token inspection."""

import time
from typing import Any

import jwt

TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refresh_token"


class TokenCache:
    """
    Key/value token storage owned by one client session.

    Holds the access token under "token" and the refresh token under
    "refresh_token". Nothing here is shared between sessions.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    @property
    def access_token(self) -> str | None:
        return self.get(TOKEN_KEY)

    @property
    def refresh_token(self) -> str | None:
        return self.get(REFRESH_TOKEN_KEY)

    def store_pair(self, access_token: str, refresh_token: str | None = None) -> None:
        self.set(TOKEN_KEY, access_token)
        if refresh_token:
            self.set(REFRESH_TOKEN_KEY, refresh_token)


def _unverified_claims(token: str) -> dict[str, Any] | None:
    try:
        return jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.PyJWTError:
        return None


def is_token_expired(token: str | None, leeway: float = 0.0, now: float | None = None) -> bool:
    """
    True if the token is missing, unreadable or past its exp claim.

    The signature is not checked; the server does that on every request.
    """
    if not token:
        return True
    claims = _unverified_claims(token)
    if claims is None:
        return True
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return True
    current = time.time() if now is None else now
    return exp < current + leeway


def token_role(token: str | None) -> str | None:
    """Role claim of an access token, or None when absent or unreadable."""
    if not token:
        return None
    claims = _unverified_claims(token)
    if claims is None:
        return None
    role = claims.get("role")
    return role if isinstance(role, str) else None
