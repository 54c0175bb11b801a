"""Unit tests for jobflow.core.security: password hashing and access/refresh JWTs."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from jobflow.core.config import settings
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


class TestPasswordHashing(unittest.TestCase):
    """hash_password / verify_password round-trip with bcrypt."""

    def test_round_trip(self) -> None:
        hashed = hash_password("s3cret!pw")
        self.assertNotEqual(hashed, "s3cret!pw")
        self.assertTrue(verify_password("s3cret!pw", hashed))

    def test_wrong_password(self) -> None:
        hashed = hash_password("s3cret!pw")
        self.assertFalse(verify_password("s3cret!pW", hashed))
        self.assertFalse(verify_password("", hashed))

    def test_salted(self) -> None:
        self.assertNotEqual(hash_password("same-password"), hash_password("same-password"))

    def test_missing_or_garbage_hash(self) -> None:
        self.assertFalse(verify_password("s3cret!pw", None))
        self.assertFalse(verify_password("s3cret!pw", "not-a-bcrypt-hash"))

    def test_uses_configured_cost(self) -> None:
        hashed = hash_password("s3cret!pw")
        self.assertEqual(int(hashed.split("$")[2]), settings.BCRYPT_ROUNDS)

    def test_dummy_hash_is_stable_and_costed_like_real_hashes(self) -> None:
        dummy = dummy_password_hash()
        self.assertIs(dummy, dummy_password_hash())
        self.assertEqual(int(dummy.split("$")[2]), settings.BCRYPT_ROUNDS)
        self.assertFalse(verify_password("s3cret!pw", dummy))


class TestTokens(unittest.TestCase):
    """Access and refresh tokens use separate secrets, types and expiries."""

    def test_access_token_claims(self) -> None:
        token = create_access_token(7, "alice", "REQUESTER")
        payload = decode_access_token(token)
        self.assertEqual(payload["sub"], "7")
        self.assertEqual(payload["username"], "alice")
        self.assertEqual(payload["role"], "REQUESTER")
        self.assertEqual(payload["type"], "access")
        lifetime = payload["exp"] - payload["iat"]
        self.assertEqual(lifetime, settings.JWT_EXPIRE_MINUTES * 60)

    def test_refresh_token_claims(self) -> None:
        payload = decode_refresh_token(create_refresh_token(7, "alice", "REQUESTER"))
        self.assertEqual(payload["type"], "refresh")
        lifetime = payload["exp"] - payload["iat"]
        self.assertEqual(lifetime, settings.JWT_REFRESH_EXPIRE_MINUTES * 60)

    def test_token_classes_are_not_interchangeable(self) -> None:
        access = create_access_token(7, "alice", "REQUESTER")
        refresh = create_refresh_token(7, "alice", "REQUESTER")
        with self.assertRaises(jwt.PyJWTError):
            decode_refresh_token(access)
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(refresh)

    def test_wrong_type_with_right_secret_rejected(self) -> None:
        now = datetime.now(UTC)
        forged = jwt.encode(
            {"sub": "7", "type": "access", "iat": now, "exp": now + timedelta(minutes=5)},
            settings.JWT_REFRESH_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(jwt.InvalidTokenError):
            decode_refresh_token(forged)

    def test_expired_refresh_token_rejected(self) -> None:
        past = datetime.now(UTC) - timedelta(days=1)
        expired = jwt.encode(
            {"sub": "7", "type": "refresh", "iat": past, "exp": past + timedelta(minutes=1)},
            settings.JWT_REFRESH_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_refresh_token(expired)

    def test_tokens_issued_together_differ(self) -> None:
        first = create_refresh_token(7, "alice", "REQUESTER")
        second = create_refresh_token(7, "alice", "REQUESTER")
        self.assertNotEqual(first, second)


class TestRefreshTokenHash(unittest.TestCase):
    """Stored refresh hashes match only the exact token they were made from."""

    def test_matches_same_token(self) -> None:
        token = create_refresh_token(7, "alice", "REQUESTER")
        self.assertTrue(verify_refresh_token_hash(token, hash_refresh_token(token)))

    def test_sibling_token_does_not_match(self) -> None:
        # Same user, same second: only the tail of the JWT differs.
        old = create_refresh_token(7, "alice", "REQUESTER")
        new = create_refresh_token(7, "alice", "REQUESTER")
        self.assertFalse(verify_refresh_token_hash(old, hash_refresh_token(new)))

    def test_missing_hash(self) -> None:
        self.assertFalse(verify_refresh_token_hash("anything", None))


if __name__ == "__main__":
    unittest.main()
