"""Signup, login, refresh-token rotation and bearer-token resolution."""

import logging

import jwt
from pydantic import ValidationError as PydanticValidationError

from jobflow.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    dummy_password_hash,
    hash_password,
    hash_refresh_token,
    verify_password,
    verify_refresh_token_hash,
)
from jobflow.models import User, UserRole
from jobflow.schemas.auth import Credentials, CurrentUser, TokenPair
from jobflow.services.credential_store import CredentialStore
from jobflow.services.errors import (
    ForbiddenError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SIGNUP_MESSAGE = "User registered successfully"
LOGOUT_MESSAGE = "Logged out"
INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
INVALID_ACCESS_TOKEN = "Invalid or expired token"


def _subject_id(payload: dict) -> int | None:
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


def _validate_credentials(username: str, password: str) -> Credentials:
    try:
        return Credentials(username=username, password=password)
    except PydanticValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise ValidationError(f"Invalid {' and '.join(fields) or 'input'} length.") from e


class AuthService:
    """
    Account and token lifecycle on top of a CredentialStore.

    Refresh tokens are accepted only while their hash is the one stored for the
    user; issuing a new pair overwrites it, so each refresh token works once.
    """

    def __init__(self, store: CredentialStore) -> None:
        self.store = store

    def signup(
        self,
        username: str,
        password: str,
        role: UserRole = UserRole.REQUESTER,
    ) -> str:
        """Create an account. Raises ConflictError if the username is taken."""
        creds = _validate_credentials(username, password)
        user = self.store.create(creds.username, hash_password(creds.password), role)
        logger.info(
            "User signed up",
            extra={"event": "signup", "user_id": user.id, "role": user.role},
        )
        return SIGNUP_MESSAGE

    def validate_user(self, username: str, password: str) -> User | None:
        """Return the user if the password matches, else None."""
        user = self.store.find_by_username(username)
        if user is None:
            # Unknown usernames pay one bcrypt check, like a wrong password.
            verify_password(password, dummy_password_hash())
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def authenticate(self, username: str, password: str) -> TokenPair:
        """Check credentials and log in. Raises UnauthorizedError on mismatch."""
        user = self.validate_user(username, password)
        if user is None:
            logger.info("Login rejected", extra={"event": "login", "outcome": "rejected"})
            raise UnauthorizedError(INVALID_CREDENTIALS)
        return self.login(user)

    def _issue_pair(self, user: User) -> tuple[TokenPair, str]:
        pair = TokenPair(
            access_token=create_access_token(user.id, user.username, user.role),
            refresh_token=create_refresh_token(user.id, user.username, user.role),
        )
        return pair, hash_refresh_token(pair.refresh_token)

    def login(self, user: User) -> TokenPair:
        """Issue a token pair for an already-authenticated user and store its refresh hash."""
        pair, refresh_hash = self._issue_pair(user)
        self.store.update_refresh_hash(user.id, refresh_hash)
        logger.info("User logged in", extra={"event": "login", "user_id": user.id})
        return pair

    def refresh(self, presented_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair and rotate the stored hash.

        Bad signature, expiry, unknown user, signed-out user and hash mismatch
        all raise the same UnauthorizedError.
        """
        try:
            payload = decode_refresh_token(presented_token)
        except jwt.PyJWTError:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        user_id = _subject_id(payload)
        user = self.store.find_by_id(user_id) if user_id is not None else None
        if user is None or not user.current_refresh_token_hash:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        stored_hash = user.current_refresh_token_hash
        if not verify_refresh_token_hash(presented_token, stored_hash):
            logger.warning(
                "Refresh token rejected",
                extra={"event": "refresh", "user_id": user.id, "outcome": "mismatch"},
            )
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        pair, new_hash = self._issue_pair(user)
        if not self.store.swap_refresh_hash(user.id, stored_hash, new_hash):
            logger.warning(
                "Refresh token rejected",
                extra={"event": "refresh", "user_id": user.id, "outcome": "race_lost"},
            )
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        logger.info("Refresh token rotated", extra={"event": "refresh", "user_id": user.id})
        return pair

    def logout(self, user_id: int) -> str:
        """Revoke the user's refresh token."""
        self.store.update_refresh_hash(user_id, None)
        logger.info("User logged out", extra={"event": "logout", "user_id": user_id})
        return LOGOUT_MESSAGE

    def resolve_access_token(self, token: str | None) -> CurrentUser:
        """Verify a bearer access token and load its user. Raises UnauthorizedError."""
        if not token:
            raise UnauthorizedError("Not authenticated")
        try:
            payload = decode_access_token(token)
        except jwt.PyJWTError:
            raise UnauthorizedError(INVALID_ACCESS_TOKEN)
        user_id = _subject_id(payload)
        if user_id is None:
            raise UnauthorizedError("Invalid token payload")
        user = self.store.find_by_id(user_id)
        if user is None:
            raise UnauthorizedError("User not found")
        return CurrentUser.model_validate(user)

    def list_users(self, current_user: CurrentUser) -> list[CurrentUser]:
        """List all accounts (SUPERVISOR only)."""
        if current_user.role != UserRole.SUPERVISOR:
            raise ForbiddenError("Supervisor access required")
        return [CurrentUser.model_validate(u) for u in self.store.list_users()]
