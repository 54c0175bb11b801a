"""Validation rules of jobflow.core.config.Settings."""

import unittest

from pydantic import ValidationError

from jobflow.core.config import Settings


def _settings(**overrides: object) -> Settings:
    """Settings from explicit values only (no .env file)."""
    values: dict[str, object] = {
        "JWT_SECRET": "access-secret",
        "JWT_REFRESH_SECRET": "refresh-secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        s = _settings()
        self.assertEqual(s.JWT_EXPIRE_MINUTES, 15)
        self.assertEqual(s.JWT_REFRESH_EXPIRE_MINUTES, 7 * 24 * 60)
        self.assertEqual(s.GRAPHQL_PATH, "/graphql")

    def test_token_secrets_must_differ(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_SECRET="same", JWT_REFRESH_SECRET="same")

    def test_refresh_must_outlive_access(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_EXPIRE_MINUTES=120, JWT_REFRESH_EXPIRE_MINUTES=60)

    def test_empty_secret(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_REFRESH_SECRET="   ")

    def test_database_url_must_be_postgres(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="mysql://localhost/jobflow")

    def test_cors_origin(self) -> None:
        self.assertEqual(
            _settings(CORS_ORIGIN="https://jobs.example.com/").CORS_ORIGIN,
            "https://jobs.example.com",
        )
        with self.assertRaises(ValidationError):
            _settings(CORS_ORIGIN="jobs.example.com")

    def test_log_level_normalised(self) -> None:
        self.assertEqual(_settings(LOG_LEVEL="debug").LOG_LEVEL, "DEBUG")
        with self.assertRaises(ValidationError):
            _settings(LOG_LEVEL="chatty")

    def test_bcrypt_rounds_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(BCRYPT_ROUNDS=4)


if __name__ == "__main__":
    unittest.main()
