"""Password hashing and JWT issuance/verification for access and refresh tokens."""

import hashlib
import secrets
import uuid
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any, Literal

import bcrypt
import jwt

from jobflow.core.config import settings

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72

TokenType = Literal["access", "refresh"]


def _bcrypt_hash(data: bytes) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(data[:BCRYPT_MAX_BYTES], salt).decode("utf-8")


def _bcrypt_check(data: bytes, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(data[:BCRYPT_MAX_BYTES], hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return _bcrypt_hash(plain_password.encode("utf-8"))


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash."""
    return _bcrypt_check(plain_password.encode("utf-8"), hashed)


@lru_cache
def dummy_password_hash() -> str:
    """Hash of a random password, checked when the username is unknown to equalize login timing."""
    return hash_password(secrets.token_urlsafe(32))


def _token_digest(token: str) -> bytes:
    # JWTs for the same user share a long common prefix, so bcrypt's 72-byte
    # window must see a digest of the whole token instead of the token itself.
    return hashlib.sha256(token.encode("utf-8")).hexdigest().encode("ascii")


def hash_refresh_token(token: str) -> str:
    """Hash a refresh token for server-side storage."""
    return _bcrypt_hash(_token_digest(token))


def verify_refresh_token_hash(token: str, hashed: str | None) -> bool:
    """Compare a presented refresh token with the stored hash."""
    return _bcrypt_check(_token_digest(token), hashed)


def _create_token(
    sub: str | int,
    username: str,
    role: str,
    token_type: TokenType,
    secret: str,
    expires: timedelta,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "username": username,
        "role": role,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + expires,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def _decode_token(token: str, secret: str, token_type: TokenType) -> dict[str, Any]:
    payload = jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp", "iat"]},
    )
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"Expected a {token_type} token")
    return payload


def create_access_token(sub: str | int, username: str, role: str) -> str:
    """Create a short-lived JWT access token signed with JWT_SECRET."""
    return _create_token(
        sub,
        username,
        role,
        "access",
        settings.JWT_SECRET.get_secret_value(),
        timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    )


def create_refresh_token(sub: str | int, username: str, role: str) -> str:
    """Create a long-lived JWT refresh token signed with JWT_REFRESH_SECRET."""
    return _create_token(
        sub,
        username,
        role,
        "refresh",
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        timedelta(minutes=settings.JWT_REFRESH_EXPIRE_MINUTES),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token; return its payload.
    Raises jwt.PyJWTError on invalid, expired or wrong-type token.
    """
    return _decode_token(token, settings.JWT_SECRET.get_secret_value(), "access")


def decode_refresh_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a refresh token; return its payload.
    Raises jwt.PyJWTError on invalid, expired or wrong-type token.
    """
    return _decode_token(token, settings.JWT_REFRESH_SECRET.get_secret_value(), "refresh")
