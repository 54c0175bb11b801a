"""Tests for CredentialStore against an in-memory SQLite database."""

import unittest
from unittest.mock import MagicMock

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobflow.models import Base, User, UserRole
from jobflow.services.credential_store import CredentialStore
from jobflow.services.errors import ConflictError, InternalError


def _session_factory() -> sessionmaker:
    """Fresh in-memory database with the users table."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


class CredentialStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = _session_factory()()
        self.store = CredentialStore(self.session)

    def tearDown(self) -> None:
        self.session.close()


class TestCreateAndFind(CredentialStoreTestCase):
    """create / find_by_username / find_by_id."""

    def test_create_defaults_to_requester(self) -> None:
        user = self.store.create("alice", "hash")
        self.assertIsNotNone(user.id)
        self.assertEqual(user.role, UserRole.REQUESTER.value)
        self.assertIsNone(user.current_refresh_token_hash)
        self.assertIsNotNone(user.created_at)

    def test_create_with_role(self) -> None:
        user = self.store.create("sam", "hash", UserRole.SUPERVISOR)
        self.assertEqual(user.role, "SUPERVISOR")

    def test_find_by_username_is_case_sensitive(self) -> None:
        self.store.create("alice", "hash")
        self.assertIsNotNone(self.store.find_by_username("alice"))
        self.assertIsNone(self.store.find_by_username("Alice"))
        self.assertIsNone(self.store.find_by_username("alice "))

    def test_find_by_id(self) -> None:
        user = self.store.create("alice", "hash")
        self.assertEqual(self.store.find_by_id(user.id).username, "alice")
        self.assertIsNone(self.store.find_by_id(user.id + 100))

    def test_duplicate_username_conflicts(self) -> None:
        self.store.create("alice", "hash-1")
        with self.assertRaises(ConflictError):
            self.store.create("alice", "hash-2")
        self.assertEqual(self.session.query(User).count(), 1)
        self.assertEqual(self.store.find_by_username("alice").password_hash, "hash-1")

    def test_list_users_ordered_by_id(self) -> None:
        self.store.create("bob", "h")
        self.store.create("alice", "h")
        self.assertEqual([u.username for u in self.store.list_users()], ["bob", "alice"])


class TestRefreshHash(CredentialStoreTestCase):
    """update_refresh_hash, swap_refresh_hash and clear_refresh_hashes."""

    def test_update_and_clear(self) -> None:
        user = self.store.create("alice", "hash")
        updated = self.store.update_refresh_hash(user.id, "rt-hash-1")
        self.assertEqual(updated.current_refresh_token_hash, "rt-hash-1")
        cleared = self.store.update_refresh_hash(user.id, None)
        self.assertIsNone(cleared.current_refresh_token_hash)

    def test_update_unknown_user(self) -> None:
        with self.assertRaises(InternalError):
            self.store.update_refresh_hash(999, "rt-hash")

    def test_swap_requires_expected_hash(self) -> None:
        user = self.store.create("alice", "hash")
        self.store.update_refresh_hash(user.id, "rt-1")

        self.assertTrue(self.store.swap_refresh_hash(user.id, "rt-1", "rt-2"))
        self.assertEqual(self.store.find_by_id(user.id).current_refresh_token_hash, "rt-2")

        # A second swap from the stale hash loses.
        self.assertFalse(self.store.swap_refresh_hash(user.id, "rt-1", "rt-3"))
        self.assertEqual(self.store.find_by_id(user.id).current_refresh_token_hash, "rt-2")

    def test_swap_after_logout_fails(self) -> None:
        user = self.store.create("alice", "hash")
        self.store.update_refresh_hash(user.id, "rt-1")
        self.store.update_refresh_hash(user.id, None)
        self.assertFalse(self.store.swap_refresh_hash(user.id, "rt-1", "rt-2"))
        self.assertIsNone(self.store.find_by_id(user.id).current_refresh_token_hash)

    def test_clear_selected_and_all(self) -> None:
        alice = self.store.create("alice", "h")
        bob = self.store.create("bob", "h")
        carol = self.store.create("carol", "h")
        for u in (alice, bob, carol):
            self.store.update_refresh_hash(u.id, f"rt-{u.username}")

        self.assertEqual(self.store.clear_refresh_hashes([alice.id]), 1)
        self.assertIsNone(self.store.find_by_id(alice.id).current_refresh_token_hash)
        self.assertEqual(self.store.find_by_id(bob.id).current_refresh_token_hash, "rt-bob")

        self.assertEqual(self.store.clear_refresh_hashes(), 2)
        self.assertEqual(self.store.clear_refresh_hashes(), 0)


class TestStorageFailures(unittest.TestCase):
    """Storage errors are rolled back and surface as InternalError without details."""

    def test_lookup_failure(self) -> None:
        session = MagicMock()
        session.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        store = CredentialStore(session)
        with self.assertRaises(InternalError) as ctx:
            store.find_by_username("alice")
        self.assertNotIn("db down", ctx.exception.message)
        session.rollback.assert_called_once()

    def test_swap_failure(self) -> None:
        session = MagicMock()
        session.execute.side_effect = OperationalError("UPDATE", {}, Exception("db down"))
        store = CredentialStore(session)
        with self.assertRaises(InternalError):
            store.swap_refresh_hash(1, "old", "new")
        session.commit.assert_not_called()
        session.rollback.assert_called_once()


if __name__ == "__main__":
    unittest.main()
