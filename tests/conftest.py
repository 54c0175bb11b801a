"""Test defaults applied before jobflow settings are first loaded."""

import os

# Cheaper bcrypt keeps the suite fast; secrets must differ per token class.
os.environ.setdefault("BCRYPT_ROUNDS", "10")
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("APP_ENV", "dev")
