"""Core app configuration, database and security primitives."""

from jobflow.core.config import get_settings, settings
from jobflow.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
