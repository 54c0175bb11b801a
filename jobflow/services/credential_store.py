"""Persistence of user accounts and their current refresh-token hash."""

import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobflow.models import User, UserRole
from jobflow.services.errors import ConflictError, InternalError

logger = logging.getLogger(__name__)

STORAGE_FAILURE_MESSAGE = "Internal error while accessing user records."


class CredentialStore:
    """
    User lookups and writes on one request-scoped session.

    Every write commits immediately. Username lookups are exact and case-sensitive.
    Storage failures are rolled back and surface as InternalError.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _fail(self, operation: str, exc: SQLAlchemyError) -> InternalError:
        self.session.rollback()
        logger.exception(
            "Credential store operation failed",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        return InternalError(STORAGE_FAILURE_MESSAGE)

    def find_by_username(self, username: str) -> User | None:
        try:
            return self.session.query(User).filter(User.username == username).first()
        except SQLAlchemyError as e:
            raise self._fail("find_by_username", e) from e

    def find_by_id(self, user_id: int) -> User | None:
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as e:
            raise self._fail("find_by_id", e) from e

    def list_users(self) -> list[User]:
        try:
            return self.session.query(User).order_by(User.id).all()
        except SQLAlchemyError as e:
            raise self._fail("list_users", e) from e

    def create(
        self,
        username: str,
        password_hash: str,
        role: UserRole = UserRole.REQUESTER,
    ) -> User:
        """Insert a new user. Raises ConflictError if the username exists."""
        if self.find_by_username(username) is not None:
            raise ConflictError("Username already exists")
        user = User(username=username, password_hash=password_hash, role=role.value)
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same username.
            self.session.rollback()
            raise ConflictError("Username already exists") from e
        except SQLAlchemyError as e:
            raise self._fail("create", e) from e
        self.session.refresh(user)
        return user

    def update_refresh_hash(self, user_id: int, refresh_hash: str | None) -> User:
        """Overwrite the stored refresh-token hash (None signs the user out)."""
        user = self.find_by_id(user_id)
        if user is None:
            raise InternalError(STORAGE_FAILURE_MESSAGE)
        try:
            user.current_refresh_token_hash = refresh_hash
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("update_refresh_hash", e) from e
        self.session.refresh(user)
        return user

    def swap_refresh_hash(self, user_id: int, expected_hash: str, new_hash: str) -> bool:
        """
        Replace the stored hash only if it still equals expected_hash.

        Returns False when another request rotated or cleared it first.
        """
        try:
            result = self.session.execute(
                update(User)
                .where(User.id == user_id, User.current_refresh_token_hash == expected_hash)
                .values(current_refresh_token_hash=new_hash)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("swap_refresh_hash", e) from e
        return result.rowcount == 1

    def clear_refresh_hashes(self, user_ids: list[int] | None = None) -> int:
        """Sign out the given users (or everyone); returns rows changed."""
        stmt = update(User).where(User.current_refresh_token_hash.is_not(None))
        if user_ids is not None:
            stmt = stmt.where(User.id.in_(user_ids))
        try:
            result = self.session.execute(
                stmt.values(current_refresh_token_hash=None).execution_options(
                    synchronize_session=False
                )
            )
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("clear_refresh_hashes", e) from e
        return result.rowcount
